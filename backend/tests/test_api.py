import asyncio
import io
import json

import httpx
from openpyxl import Workbook

from nft_sender.models.minting import MintingRecord, MintStatus

API = "/api/v1"
EVM_WALLET = "0x" + "1" * 40


async def create_project(client, **overrides):
    body = {
        "name": "Launch drop",
        "api_key": "sk_test",
        "template_id": "tmpl-1",
        "collection_id": "col-1",
        "blockchain": "polygon-amoy",
    }
    body.update(overrides)
    response = await client.post(f"{API}/projects", json=body)
    assert response.status_code == 201
    return response.json()


async def add_recipients(client, project_id, text):
    response = await client.post(f"{API}/projects/{project_id}/recipients", json={"text": text})
    assert response.status_code == 201
    return response.json()


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert "polygon-amoy" in response.json()["supported_chains"]


async def test_project_crud_hides_api_key(client):
    project = await create_project(client)
    assert "api_key" not in project
    assert project["blockchain"] == "polygon-amoy"

    listed = (await client.get(f"{API}/projects")).json()
    assert [p["id"] for p in listed] == [project["id"]]

    updated = await client.put(f"{API}/projects/{project['id']}", json={"name": "Renamed", "collection_id": None})
    assert updated.status_code == 200
    assert updated.json()["name"] == "Renamed"
    assert updated.json()["collection_id"] is None

    missing = await client.get(f"{API}/projects/00000000-0000-0000-0000-000000000000")
    assert missing.status_code == 404
    assert (await client.get(f"{API}/projects/not-a-uuid")).status_code == 404


async def test_recipients_from_text(client):
    project = await create_project(client)

    loaded = await add_recipients(client, project["id"], f"alice@example.com, {EVM_WALLET} junk")

    assert loaded["count"] == 2
    assert loaded["discarded"] == ["junk"]
    assert [r["recipient"] for r in loaded["records"]] == ["alice@example.com", EVM_WALLET]
    assert all(r["status"] == "pending" for r in loaded["records"])

    stats = (await client.get(f"{API}/projects/{project['id']}/stats")).json()
    assert stats == {"total": 2, "minted": 0, "pending": 2, "failed": 0}


async def test_recipients_without_valid_entries(client):
    project = await create_project(client)
    response = await client.post(f"{API}/projects/{project['id']}/recipients", json={"text": "nope"})
    assert response.status_code == 400
    assert response.json()["detail"] == "No valid recipients found"


async def test_recipients_from_spreadsheet(client):
    project = await create_project(client)
    workbook = Workbook()
    workbook.active.append(["Recipient"])
    workbook.active.append(["bob@example.com"])
    buffer = io.BytesIO()
    workbook.save(buffer)

    response = await client.post(
        f"{API}/projects/{project['id']}/recipients/upload",
        files={"file": ("list.xlsx", buffer.getvalue(), "application/octet-stream")},
    )
    assert response.status_code == 201
    assert response.json()["count"] == 1

    bad = await client.post(
        f"{API}/projects/{project['id']}/recipients/upload",
        files={"file": ("list.pdf", b"%PDF", "application/pdf")},
    )
    assert bad.status_code == 400


async def test_mint_selected_records(client, provider):
    project = await create_project(client)
    loaded = await add_recipients(client, project["id"], f"alice@example.com {EVM_WALLET}")
    ids = [r["id"] for r in loaded["records"]]

    response = await client.post(f"{API}/projects/{project['id']}/mint", json={"record_ids": ids})

    assert response.status_code == 200
    body = response.json()
    assert body["success_count"] == 2
    assert body["stats"]["minted"] == 2
    assert sorted(p["recipient"] for p in provider.mint_payloads()) == sorted([
        "email:alice@example.com:polygon-amoy",
        f"polygon-amoy:{EVM_WALLET}",
    ])
    assert await MintingRecord.filter(status=MintStatus.MINTED).count() == 2

    again = await client.post(f"{API}/projects/{project['id']}/mint", json={"record_ids": ids})
    assert again.status_code == 400
    assert again.json()["detail"] == "No pending records selected"


async def test_failed_mint_then_retry(client, provider):
    project = await create_project(client, blockchain="solana")
    loaded = await add_recipients(client, project["id"], EVM_WALLET)
    record_id = loaded["records"][0]["id"]

    provider.respond = lambda request: httpx.Response(400, json={"message": "Invalid solana address"})
    response = await client.post(f"{API}/projects/{project['id']}/mint", json={"record_ids": [record_id]})
    record = response.json()["records"][0]
    assert record["status"] == "failed"
    assert "Blockchain mismatch" in record["error_message"]

    provider.respond = provider.default_response
    retried = await client.post(f"{API}/projects/{project['id']}/records/{record_id}/retry")
    assert retried.status_code == 200
    assert retried.json()["retried"] is True
    assert retried.json()["success"] is True
    assert retried.json()["record"]["status"] == "minted"
    assert retried.json()["record"]["error_message"] is None

    not_failed = await client.post(f"{API}/projects/{project['id']}/records/{record_id}/retry")
    assert not_failed.json()["retried"] is False


async def test_retry_failed(client, provider):
    project = await create_project(client)
    loaded = await add_recipients(client, project["id"], "a@example.com b@example.com")
    ids = [r["id"] for r in loaded["records"]]

    provider.respond = lambda request: httpx.Response(500, json={"error": "busy"})
    await client.post(f"{API}/projects/{project['id']}/mint", json={"record_ids": ids})

    provider.respond = provider.default_response
    response = await client.post(f"{API}/projects/{project['id']}/retry-failed")
    assert response.status_code == 200
    assert response.json()["success_count"] == 2

    nothing_left = await client.post(f"{API}/projects/{project['id']}/retry-failed")
    assert nothing_left.status_code == 400


async def test_mint_with_incomplete_project(client, provider):
    project = await create_project(client, api_key="sk_test")
    loaded = await add_recipients(client, project["id"], "a@example.com")
    await client.put(f"{API}/projects/{project['id']}", json={"api_key": ""})

    response = await client.post(
        f"{API}/projects/{project['id']}/mint",
        json={"record_ids": [loaded["records"][0]["id"]]},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Missing API key or collection ID"
    assert provider.mint_requests == []


async def test_delete_records(client):
    project = await create_project(client)
    loaded = await add_recipients(client, project["id"], "a@example.com b@example.com c@example.com")
    a, b, c = [r["id"] for r in loaded["records"]]

    single = await client.delete(f"{API}/projects/{project['id']}/records/{a}")
    assert single.json() == {"deleted": True, "count": 1}
    assert (await client.delete(f"{API}/projects/{project['id']}/records/{a}")).status_code == 404

    many = await client.post(f"{API}/projects/{project['id']}/records/delete", json={"record_ids": [b, c]})
    assert many.json()["count"] == 2
    assert (await client.get(f"{API}/projects/{project['id']}/records")).json() == []
    assert await MintingRecord.all().count() == 0

    empty = await client.post(f"{API}/projects/{project['id']}/records/delete", json={"record_ids": []})
    assert empty.status_code == 400


async def test_deleting_project_keeps_records(client):
    project = await create_project(client)
    await add_recipients(client, project["id"], "a@example.com")

    response = await client.delete(f"{API}/projects/{project['id']}")
    assert response.status_code == 200
    assert (await client.get(f"{API}/projects/{project['id']}")).status_code == 404
    assert await MintingRecord.filter(project_id=project["id"]).count() == 1


async def test_crossmint_nft_function(client, provider):
    response = await client.post(
        "/functions/crossmint-nft",
        json={
            "recipient": "alice@example.com",
            "apiKey": "sk_test",
            "templateId": "tmpl-1",
            "blockchain": "polygon-amoy",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    body = response.json()
    assert body["success"] is True
    assert body["mintingDetails"]["formattedRecipient"] == "email:alice@example.com:polygon-amoy"
    assert json.loads(provider.mint_requests[0].content) == {"recipient": "email:alice@example.com:polygon-amoy"}


async def test_crossmint_nft_function_reconciles_record(client, provider):
    project = await create_project(client)
    loaded = await add_recipients(client, project["id"], "a@example.com")
    record_id = loaded["records"][0]["id"]

    provider.respond = lambda request: httpx.Response(400, json={"error": {"message": "Template paused"}})
    response = await client.post(
        "/functions/crossmint-nft",
        json={
            "recipient": "a@example.com",
            "apiKey": "sk_test",
            "templateId": "tmpl-1",
            "collectionId": "col-1",
            "recordId": record_id,
        },
    )

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Template paused"
    stored = await MintingRecord.get(id=record_id)
    assert stored.status == MintStatus.FAILED
    assert stored.error_message == "Template paused"


async def test_crossmint_nft_function_missing_parameters(client, provider):
    response = await client.post("/functions/crossmint-nft", json={"recipient": "a@example.com"})
    assert response.status_code == 400
    assert response.json()["success"] is False
    assert provider.requests == []


async def test_function_preflight(client):
    response = await client.options("/functions/validate-template")
    assert response.status_code == 200
    assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"


async def test_validate_template_function(client, provider):
    def routes(request):
        return httpx.Response(200, json={"metadata": {"name": "Drop"}, "onChain": {"chain": "solana"}})

    provider.respond = routes
    response = await client.get(
        "/functions/validate-template",
        params={"collectionId": "col-1", "apiKey": "sk_test"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Drop"
    assert body["standardizedChain"] == "solana"
    assert body["compatibleWallets"]["isSolana"] is True

    missing = await client.get("/functions/validate-template", params={"templateId": "tmpl-1"})
    assert missing.status_code == 400
    assert missing.json() == {"error": True, "message": "Missing templateId or apiKey"}


async def test_retry_of_pending_record_does_not_hide_running_mint(client, provider):
    project = await create_project(client)
    loaded = await add_recipients(client, project["id"], "a@example.com")
    record_id = loaded["records"][0]["id"]
    started, release = asyncio.Event(), asyncio.Event()

    async def held(request):
        started.set()
        await release.wait()
        return httpx.Response(200, json={"id": "nft_1"})

    provider.respond = held
    mint = asyncio.create_task(
        client.post(f"{API}/projects/{project['id']}/mint", json={"record_ids": [record_id]})
    )
    await started.wait()

    retried = await client.post(f"{API}/projects/{project['id']}/records/{record_id}/retry")
    assert retried.json()["retried"] is False

    release.set()
    body = (await mint).json()
    assert body["stats"] == {"total": 1, "minted": 1, "pending": 0, "failed": 0}
    assert len(provider.mint_requests) == 1

    again = await client.post(f"{API}/projects/{project['id']}/mint", json={"record_ids": [record_id]})
    assert again.status_code == 400
    assert len(provider.mint_requests) == 1


async def test_bulk_delete_is_scoped_to_the_project(client):
    project_a = await create_project(client)
    project_b = await create_project(client, name="Other drop")
    loaded = await add_recipients(client, project_a["id"], "a@example.com")
    record_id = loaded["records"][0]["id"]

    response = await client.post(
        f"{API}/projects/{project_b['id']}/records/delete",
        json={"record_ids": [record_id]},
    )

    assert response.status_code == 404
    assert await MintingRecord.filter(id=record_id).count() == 1
    records_a = (await client.get(f"{API}/projects/{project_a['id']}/records")).json()
    assert [r["id"] for r in records_a] == [record_id]

    unknown = await client.post(
        f"{API}/projects/00000000-0000-0000-0000-000000000000/records/delete",
        json={"record_ids": [record_id]},
    )
    assert unknown.status_code == 404


async def test_bulk_delete_ignores_foreign_ids(client):
    project_a = await create_project(client)
    project_b = await create_project(client, name="Other drop")
    own = (await add_recipients(client, project_a["id"], "a@example.com"))["records"][0]["id"]
    foreign = (await add_recipients(client, project_b["id"], "b@example.com"))["records"][0]["id"]

    response = await client.post(
        f"{API}/projects/{project_a['id']}/records/delete",
        json={"record_ids": [own, foreign, own]},
    )

    assert response.json() == {"deleted": True, "count": 1}
    assert await MintingRecord.filter(id=foreign).count() == 1
    assert await MintingRecord.filter(id=own).count() == 0
