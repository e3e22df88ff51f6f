"""
Tests for the Streamlit page, driven headless through AppTest.
"""

from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

from visionboard.models.wish import Wish


APP_PATH = str(Path(__file__).resolve().parents[1] / "app" / "main.py")


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("VISION_BOARD_STORAGE_PATH", str(tmp_path / "local_storage.json"))
    for name in ("API_KEY", "GEMINI_API_KEY", "VITE_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    return AppTest.from_file(APP_PATH, default_timeout=30)


class TestCelebration:
    """Tests for the completion message."""

    def test_wish_title_is_escaped(self, app):
        """Test a title with markup is shown as text, not rendered as HTML."""
        app.session_state["celebrating_wish"] = Wish(
            title="<img src=x onerror=alert(1)>",
            target_amount=10,
            saved_amount=10,
            is_completed=True,
        )

        app.run()

        assert not app.exception
        bodies = [m.value for m in app.markdown]
        assert any("&lt;img src=x onerror=alert(1)&gt;" in body for body in bodies)
        assert not any("<img src=x" in body for body in bodies)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
