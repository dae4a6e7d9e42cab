"""GET /{slug}: redirects, text pages, previews and 404s."""

import pytest
from httpx import AsyncClient

from shortlink.dependencies import ServiceManager
from shortlink.store import InMemoryLinkStore, NewLink


@pytest.mark.asyncio
async def test_redirect_to_url(client: AsyncClient, store: InMemoryLinkStore) -> None:
    await store.insert(NewLink(slug="abc", target="https://example.com/x", is_text=False))

    response = await client.get("/abc")

    assert response.status_code == 302
    assert response.headers["location"] == "https://example.com/x"


@pytest.mark.asyncio
async def test_unknown_slug_renders_not_found_page(client: AsyncClient) -> None:
    response = await client.get("/nope")

    assert response.status_code == 404
    assert response.headers["content-type"].startswith("text/html")
    assert "Link not found" in response.text


@pytest.mark.asyncio
async def test_text_link_renders_html(client: AsyncClient, store: InMemoryLinkStore) -> None:
    await store.insert(NewLink(slug="note", target="# Groceries\n- milk\n- eggs", is_text=True))

    response = await client.get("/note")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "<h1>Groceries</h1>" in response.text
    assert "<li>milk</li>" in response.text


@pytest.mark.asyncio
async def test_preview_truncates(client: AsyncClient, manager: ServiceManager, store: InMemoryLinkStore) -> None:
    limit = manager.settings.PREVIEW_MAX_CHARS
    await store.insert(NewLink(slug="long", target="y" * (limit + 100), is_text=True))

    response = await client.get("/long", params={"preview": "1"})

    assert response.status_code == 200
    assert "y" * limit + "…" in response.text
    assert "y" * (limit + 1) not in response.text
    assert "Preview, content truncated." in response.text


@pytest.mark.asyncio
async def test_clicks_are_counted(client: AsyncClient, manager: ServiceManager, store: InMemoryLinkStore) -> None:
    inserted = await store.insert(NewLink(slug="abc", target="https://example.com/x", is_text=False))

    for _ in range(3):
        await client.get("/abc")
    await client.get("/abc", params={"preview": "true"})
    await manager.click_tracker.drain()

    record = await store.find_by_id(inserted.id)
    assert record is not None and record.clicks == 4


@pytest.mark.asyncio
async def test_not_found_is_not_counted(client: AsyncClient, manager: ServiceManager) -> None:
    await client.get("/nope")
    assert manager.click_tracker.pending == 0


@pytest.mark.asyncio
async def test_fixed_routes_win_over_slugs(client: AsyncClient, store: InMemoryLinkStore) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_single_label_host_redirects(client: AsyncClient) -> None:
    created = await client.post("/api/shorten", json={"content": "http://localhost:8000/docs", "slug": "local"})

    response = await client.get("/local")

    assert created.status_code == 200
    assert response.status_code == 302
    assert response.headers["location"] == "http://localhost:8000/docs"
