import json

import httpx

from nft_sender.models.minting import MintStatus
from nft_sender.schemas.minting import MintFunctionRequest
from nft_sender.services.crossmint import CrossmintClient
from nft_sender.services.mint_handler import MintHandler

EVM_WALLET = "0x" + "1" * 40


class RecordingStore:
    def __init__(self):
        self.updates = []

    async def update_status(self, record_id, status, error_message=None):
        self.updates.append((record_id, status, error_message))
        return True


def make_handler(respond):
    requests = []

    def handler(request):
        requests.append(request)
        return respond(request)

    client = CrossmintClient(base_url="https://crossmint.test/api", transport=httpx.MockTransport(handler))
    store = RecordingStore()
    return MintHandler(client, store), store, requests


def mint_request(**overrides) -> MintFunctionRequest:
    body = {
        "recipient": "alice@example.com",
        "apiKey": "sk_test",
        "templateId": "tmpl-1",
        "collectionId": "col-1",
        "blockchain": "polygon-amoy",
        "recordId": "rec-1",
    }
    body.update(overrides)
    return MintFunctionRequest.model_validate(body)


async def test_success_envelope_and_reconciliation():
    handler, store, requests = make_handler(lambda r: httpx.Response(200, json={"id": "nft_1"}))

    response = await handler.handle(mint_request())

    assert response.status_code == 200
    assert response.success
    assert response.body["success"] is True
    assert response.body["data"] == {"id": "nft_1"}
    assert response.body["mintingDetails"] == {
        "recipient": "alice@example.com",
        "formattedRecipient": "email:alice@example.com:polygon-amoy",
        "collectionId": "col-1",
        "templateId": "tmpl-1",
        "blockchain": "polygon-amoy",
    }
    assert requests[0].url.path == "/api/collections/col-1/nfts"
    assert json.loads(requests[0].content) == {
        "recipient": "email:alice@example.com:polygon-amoy",
        "templateId": "tmpl-1",
    }
    assert store.updates == [("rec-1", MintStatus.MINTED, None)]


async def test_missing_parameters_make_no_provider_call():
    handler, store, requests = make_handler(lambda r: httpx.Response(200, json={}))

    response = await handler.handle(mint_request(apiKey=None, recipient=""))

    assert response.status_code == 400
    assert response.body["success"] is False
    assert response.body["error"]["details"] == {"missing": ["recipient", "apiKey"]}
    assert requests == []
    assert store.updates == []


async def test_template_doubles_as_collection():
    handler, _, requests = make_handler(lambda r: httpx.Response(200, json={"id": "nft_1"}))

    await handler.handle(mint_request(collectionId=None, recipient=EVM_WALLET, blockchain=None))

    assert requests[0].url.path == "/api/collections/tmpl-1/nfts"
    # same id: templateId is not repeated in the body, default chain applies
    assert json.loads(requests[0].content) == {"recipient": f"chiliz:{EVM_WALLET}"}


async def test_unsupported_blockchain():
    handler, _, requests = make_handler(lambda r: httpx.Response(200, json={}))

    response = await handler.handle(mint_request(blockchain="bitcoin"))

    assert response.status_code == 400
    assert "Unsupported blockchain" in response.error_message
    assert "solana" in response.body["error"]["details"]["supported"]
    assert requests == []


async def test_provider_rejection_is_explained_and_recorded():
    handler, store, _ = make_handler(
        lambda r: httpx.Response(400, json={"message": "Invalid solana address"})
    )

    response = await handler.handle(mint_request(recipient=EVM_WALLET, blockchain="solana"))

    assert response.status_code == 400
    assert not response.success
    assert response.error_message.startswith("Blockchain mismatch")
    assert response.body["error"]["details"] == {"message": "Invalid solana address"}
    assert store.updates == [("rec-1", MintStatus.FAILED, response.error_message)]


async def test_network_error_is_500():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    handler, store, _ = make_handler(refuse)

    response = await handler.handle(mint_request())

    assert response.status_code == 500
    assert response.error_message == "Network error"
    assert store.updates == [("rec-1", MintStatus.FAILED, "Network error")]


async def test_without_record_id_nothing_is_reconciled():
    handler, store, _ = make_handler(lambda r: httpx.Response(200, json={"id": "nft_1"}))

    response = await handler.handle(mint_request(recordId=None))

    assert response.success
    assert store.updates == []


async def test_reconcile_disabled():
    handler, store, _ = make_handler(lambda r: httpx.Response(200, json={"id": "nft_1"}))

    await handler.handle(mint_request(), reconcile=False)

    assert store.updates == []
