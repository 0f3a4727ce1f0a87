"""
Demo website: public files, widget config and the custom 404 page.
"""
import pytest
from fastapi.testclient import TestClient

from jungle404.site import create_site_app, resolve_public_file
from jungle404.settings import PUBLIC_DIR


@pytest.fixture
def site_client():
    return TestClient(create_site_app(api_base_url="http://api.test:8000"))


def test_root_serves_index(site_client: TestClient):
    resp = site_client.get("/")
    assert resp.status_code == 200
    assert "text/html" in resp.headers["content-type"]
    assert "Jungle 404" in resp.text


def test_widget_script_served(site_client: TestClient):
    resp = site_client.get("/jungle404_snippet.js")
    assert resp.status_code == 200
    assert "/planting-intents" in resp.text


def test_missing_page_gets_widget_404(site_client: TestClient):
    resp = site_client.get("/pagina-perdida")
    assert resp.status_code == 404
    assert "jungle404_snippet.js" in resp.text


def test_widget_config_points_at_api(site_client: TestClient):
    resp = site_client.get("/jungle404-config.js")
    assert resp.status_code == 200
    assert 'window.JUNGLE404_API = "http://api.test:8000";' in resp.text


def test_traversal_outside_public_dir_is_not_served():
    assert resolve_public_file(PUBLIC_DIR, "../settings.py") is None
    assert resolve_public_file(PUBLIC_DIR, "index.html") == (PUBLIC_DIR / "index.html").resolve()
