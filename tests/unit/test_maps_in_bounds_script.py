"""
Unit tests for the maps-in-bounds smoke client
"""

import os
import sys
from unittest.mock import Mock

import pytest
import requests

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from scripts.maps_in_bounds import download_map, main, query_maps


def _session(json_body=None, content=b"", status=200):
    resp = Mock()
    resp.status_code = status
    resp.json.return_value = json_body
    resp.content = content
    if status >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    else:
        resp.raise_for_status.return_value = None
    session = Mock()
    session.get.return_value = resp
    return session


class TestMapsInBoundsClient:
    """Test cases for query_maps / download_map / main"""

    def test_query_builds_url(self):
        body = [{"path": "http://h/maps/lobby", "boundingBox": [-0.5, -0.5, 0.5, 0.5]}]
        session = _session(body)

        maps = query_maps("http://h/", -1.0, -1.0, 1.0, 1.0, session=session, timeout=3)

        assert maps == body
        session.get.assert_called_once_with("http://h/maps-in-bounds/-1.0,-1.0,1.0,1.0", timeout=3)

    def test_query_bad_request_raises(self):
        with pytest.raises(requests.HTTPError):
            query_maps("http://h", 0, 0, 1, 1, session=_session(status=400))

    def test_download_keeps_relative_path(self, tmp_path):
        session = _session(content=b"png")
        dest = download_map("http://h/maps/campus/floor%201.png", tmp_path, session=session)
        assert dest == (tmp_path / "campus" / "floor 1.png").resolve()
        assert dest.read_bytes() == b"png"

    def test_download_rejects_path_outside_out_dir(self, tmp_path):
        out_dir = tmp_path / "out"
        session = _session(content=b"gotcha")
        with pytest.raises(ValueError, match="outside"):
            download_map("http://h/maps/..%2F..%2Fescaped.txt", out_dir, session=session)
        assert not (tmp_path / "escaped.txt").exists()
        assert not (tmp_path.parent / "escaped.txt").exists()
        session.get.assert_not_called()

    def test_download_multi_segment_prefix(self, tmp_path):
        session = _session(content=b"png")
        dest = download_map("http://h/static/maps/floor1.png", tmp_path, session=session, route_prefix="/static/maps/")
        assert dest == (tmp_path / "floor1.png").resolve()

    def test_download_path_without_prefix_kept_whole(self, tmp_path):
        session = _session(content=b"png")
        dest = download_map("http://h/other/floor1.png", tmp_path, session=session)
        assert dest == (tmp_path / "other" / "floor1.png").resolve()

    def test_main_skips_escaping_download(self, monkeypatch, capsys, tmp_path):
        body = [{"path": "http://h/maps/../../../etc/x", "boundingBox": [0, 0, 1, 1]}]
        monkeypatch.setattr(requests, "Session", lambda: _session(body))
        out_dir = tmp_path / "out"
        assert main(["--server", "http://h", "--fetch", str(out_dir), "0", "0", "1", "1"]) == 0
        assert "Failed http://h/maps/../../../etc/x" in capsys.readouterr().err

    def test_main_reports_failure(self, monkeypatch, capsys):
        monkeypatch.setattr(requests, "Session", lambda: _session(status=400))
        assert main(["--server", "http://h", "0", "0", "1", "1"]) == 1
        assert "Query failed" in capsys.readouterr().err

    def test_main_lists_maps(self, monkeypatch, capsys):
        body = [{"path": "http://h/maps/lobby", "boundingBox": [-0.5, -0.5, 0.5, 0.5]}]
        monkeypatch.setattr(requests, "Session", lambda: _session(body))
        assert main(["--server", "http://h", "--", "-1", "-1", "1", "1"]) == 0
        out = capsys.readouterr().out
        assert "1 map(s)" in out
        assert "http://h/maps/lobby" in out
