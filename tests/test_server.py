"""
Test Suite for the HTTP API and CLI
===================================
Flask test-client and click CliRunner tests over a temporary quiz library.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from quizdown import __version__
from quizdown.cli import cli
from quizdown.server import create_app


GEO_QUIZ = """# Geography

### Which continent is Kenya in?
![map](map.png)
**Type:** Multiple Choice
- [ ] Asia
- [x] Africa

### Bonus: Capital of Japan?
**Type:** Free Text
**Answer:** Tokyo
"""

BROKEN_QUIZ = """# Broken
**Type:** Free Text

### No type here
"""


@pytest.fixture
def library(tmp_path: Path) -> Path:
    geo = tmp_path / "geo"
    geo.mkdir()
    (geo / "geo.md").write_text(GEO_QUIZ, encoding="utf-8")
    (geo / "map.png").write_bytes(b"\x89PNG fake")

    broken = tmp_path / "broken"
    broken.mkdir()
    (broken / "broken.md").write_text(BROKEN_QUIZ, encoding="utf-8")

    empty = tmp_path / "empty"
    empty.mkdir()
    (empty / "empty.md").write_text("", encoding="utf-8")

    return tmp_path


@pytest.fixture
def client(library):
    app = create_app({"TESTING": True, "QUIZ_DIR": str(library)})
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════════
# HTTP API TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestHttpApi:
    """Test the JSON API routes."""

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.get_json() == {
            "status": "healthy",
            "service": "quizdown",
            "version": __version__,
        }

    def test_list_quizzes(self, client):
        response = client.get("/api/quizzes")

        assert response.status_code == 200
        assert response.get_json() == [
            {"name": "broken"},
            {"name": "empty"},
            {"name": "geo"},
        ]

    def test_get_quiz(self, client):
        response = client.get("/api/quiz/geo")
        data = response.get_json()

        assert response.status_code == 200
        assert data["name"] == "geo"
        assert data["title"] == "Geography"
        assert data["mediaFiles"] == ["map.png"]
        assert [q["id"] for q in data["questions"]] == [1, 2]

        first, second = data["questions"]
        assert first["media"] == "map.png"
        assert first["type"] == "Multiple Choice"
        assert first["isBonus"] is False
        assert first["options"] == [
            {"text": "Asia", "isCorrect": False},
            {"text": "Africa", "isCorrect": True},
        ]
        assert second["isBonus"] is True
        assert second["answer"] == "Tokyo"
        assert second["kind"] == "free_text"

    def test_missing_quiz_is_404(self, client):
        response = client.get("/api/quiz/nope")

        assert response.status_code == 404
        assert response.get_json() == {"error": "Quiz not found"}

    def test_empty_quiz_is_not_404(self, client):
        response = client.get("/api/quiz/empty")

        assert response.status_code == 200
        assert response.get_json()["questions"] == []

    def test_validation(self, client):
        response = client.get("/api/quiz/broken/validation")
        data = response.get_json()

        assert response.status_code == 200
        assert data["name"] == "broken"
        assert [d["type"] for d in data["diagnostics"]] == [
            "directive_outside_question",
            "missing_type",
        ]
        assert data["diagnostics"][0]["line_number"] == 2
        assert data["validation"]["questions_missing_type"] == [1]

    def test_validation_missing_quiz(self, client):
        assert client.get("/api/quiz/nope/validation").status_code == 404

    def test_permissive_quiz_after_validation(self, client):
        client.get("/api/quiz/broken/validation")
        data = client.get("/api/quiz/broken").get_json()

        assert data["title"] == "Broken"
        assert data["questions"][0]["type"] is None

    def test_media(self, client):
        response = client.get("/api/media/geo/map.png")

        assert response.status_code == 200
        assert response.data == b"\x89PNG fake"
        response.close()

    def test_missing_media_is_404(self, client):
        response = client.get("/api/media/geo/missing.png")

        assert response.status_code == 404
        assert response.get_json() == {"error": "Media file not found"}

    def test_media_of_missing_quiz_is_404(self, client):
        assert client.get("/api/media/nope/map.png").status_code == 404

    def test_media_name_with_nul_byte_is_404(self, client):
        response = client.get("/api/media/geo/a%00b.png")

        assert response.status_code == 404
        assert response.get_json() == {"error": "Media file not found"}

    def test_unknown_route_is_json_404(self, client):
        response = client.get("/api/unknown")

        assert response.status_code == 404
        assert response.get_json() == {"error": "Not found"}

    def test_wrong_method(self, client):
        response = client.post("/api/quizzes")
        assert response.status_code == 405

    def test_cors_header(self, client):
        response = client.get(
            "/api/quizzes", headers={"Origin": "http://example.com"}
        )
        # any origin is allowed, either as a wildcard or echoed back
        assert response.headers.get("Access-Control-Allow-Origin") in (
            "*",
            "http://example.com",
        )


# ═══════════════════════════════════════════════════════════════════════════════
# CLI TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestCli:
    """Test the click command group."""

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_parse_json_output(self, library):
        path = library / "geo" / "geo.md"
        result = CliRunner().invoke(cli, ["parse", str(path), "--json-output"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["quiz"]["title"] == "Geography"
        assert data["quiz"]["name"] == "geo"
        assert data["quiz"]["questions"][1]["isBonus"] is True
        assert data["diagnostics"] == []

    def test_parse_json_output_strict(self, library):
        path = library / "broken" / "broken.md"
        result = CliRunner().invoke(
            cli, ["parse", str(path), "--json-output", "--strict"]
        )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert len(data["diagnostics"]) == 2

    def test_parse_table(self, library):
        path = library / "geo" / "geo.md"
        result = CliRunner().invoke(cli, ["parse", str(path)])

        assert result.exit_code == 0
        assert "Geography" in result.output
        assert "Tokyo" in result.output

    def test_parse_missing_file(self, tmp_path):
        result = CliRunner().invoke(cli, ["parse", str(tmp_path / "nope.md")])
        assert result.exit_code != 0

    def test_validate_clean(self, library):
        result = CliRunner().invoke(cli, ["validate", str(library / "geo" / "geo.md")])

        assert result.exit_code == 0
        assert "No diagnostics" in result.output

    def test_validate_with_diagnostics(self, library):
        result = CliRunner().invoke(
            cli, ["validate", str(library / "broken" / "broken.md")]
        )

        assert result.exit_code == 1
        assert "missing_type" in result.output

    def test_list(self, library):
        result = CliRunner().invoke(cli, ["list", "--quiz-dir", str(library)])

        assert result.exit_code == 0
        assert "geo" in result.output
        assert "Geography" in result.output

    def test_list_empty(self, tmp_path):
        result = CliRunner().invoke(cli, ["list", "--quiz-dir", str(tmp_path)])

        assert result.exit_code == 0
        assert "No quizzes found" in result.output

    def test_play_wrong_answer(self, library):
        path = library / "geo" / "geo.md"
        # start, select first option (Asia), reveal, quit
        result = CliRunner().invoke(cli, ["play", str(path)], input="   q")

        assert result.exit_code == 0
        assert "Which continent is Kenya in?" in result.output
        assert "Wrong" in result.output
        assert "Correct" in result.output

    def test_play_to_the_end(self, library):
        path = library / "geo" / "geo.md"
        # Q1: select, reveal, next; Q2: reveal, next
        result = CliRunner().invoke(cli, ["play", str(path)], input=" " * 6)

        assert result.exit_code == 0
        assert "Tokyo" in result.output
        assert "Quiz finished!" in result.output

    def test_play_right_answer(self, library):
        path = library / "geo" / "geo.md"
        # start, move down to Africa, select, reveal, quit
        result = CliRunner().invoke(cli, ["play", str(path)], input=" j  q")

        assert result.exit_code == 0
        assert "Right answer!" in result.output

    def test_play_chooses_from_library(self, library):
        result = CliRunner().invoke(
            cli, ["play", "--quiz-dir", str(library)], input="geo\n   q"
        )

        assert result.exit_code == 0
        assert "Which continent is Kenya in?" in result.output
        assert "Not quite" in result.output

    def test_play_single_quiz_library_opens_directly(self, tmp_path):
        (tmp_path / "geo").mkdir()
        (tmp_path / "geo" / "geo.md").write_text(GEO_QUIZ, encoding="utf-8")

        result = CliRunner().invoke(
            cli, ["play", "--quiz-dir", str(tmp_path)], input=" q"
        )

        assert result.exit_code == 0
        assert "Which continent is Kenya in?" in result.output

    def test_play_empty_library(self, tmp_path):
        result = CliRunner().invoke(cli, ["play", "--quiz-dir", str(tmp_path)])

        assert result.exit_code == 1
        assert "No quizzes found" in result.output

    # ─── Unreadable documents ───

    @pytest.fixture
    def unreadable(self, library) -> Path:
        (library / "bad").mkdir()
        path = library / "bad" / "bad.md"
        path.write_bytes(b"\xff\xfe# not utf-8")
        return path

    def test_list_with_unreadable_quiz(self, library, unreadable):
        result = CliRunner().invoke(cli, ["list", "--quiz-dir", str(library)])

        assert result.exit_code == 0
        assert "unreadable" in result.output
        assert "Geography" in result.output

    def test_play_unreadable_file(self, unreadable):
        result = CliRunner().invoke(cli, ["play", str(unreadable)], input="q")

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_play_unreadable_library_quiz(self, library, unreadable):
        result = CliRunner().invoke(
            cli, ["play", "--quiz-dir", str(library)], input="bad\nq"
        )

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_parse_unreadable_file(self, unreadable):
        result = CliRunner().invoke(cli, ["parse", str(unreadable)])

        assert result.exit_code == 1
        assert "Error:" in result.output
