import json

import pytest
from typer.testing import CliRunner

from querytrail.main import app

runner = CliRunner()


@pytest.fixture
def db(tmp_path):
    return tmp_path / "cli" / "querytrail.db"


def invoke(db, *args):
    return runner.invoke(app, ["--db", str(db), *args])


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.stdout.startswith("QueryTrail v")


def test_classify_json():
    result = runner.invoke(app, ["classify", "how to use the", "--json"])
    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["appears_complete"] is False
    assert payload["rule"] == "dangling_function_word"


def test_record_and_complete_session(db):
    first = json.loads(invoke(db, "record", "how to", "--user", "u1", "--json").stdout)
    assert first["completeness"] == "in_progress"

    final_res = invoke(db, "record", "how to use rails", "--user", "u1", "--final", "--json")
    assert final_res.exit_code == 0
    final = json.loads(final_res.stdout)
    assert final["id"] == first["id"]
    assert final["completeness"] == "complete"


def test_record_machine_mode_is_minified_json(db):
    result = invoke(db, "record", "ruby", "--force")
    assert result.exit_code == 0
    line = result.stdout.strip()
    assert "\n" not in line
    assert json.loads(line)["completed"] is True


def test_record_empty(db):
    payload = json.loads(invoke(db, "record", "  ", "--json").stdout)
    assert payload["status"] == "empty"


def test_finish_and_stats(db):
    recorded = json.loads(invoke(db, "record", "ruby on ra", "--user", "u1", "--json").stdout)

    finish_res = invoke(db, "finish", str(recorded["id"]), "--final-text", "ruby on rails", "--json")
    assert finish_res.exit_code == 0
    assert json.loads(finish_res.stdout)["final_text"] == "ruby on rails"

    stats = json.loads(invoke(db, "stats", "--json").stdout)
    assert stats == [{"query": "ruby on rails", "count": 1}]

    user_stats = json.loads(invoke(db, "stats", "--user", "u1", "--json").stdout)
    assert user_stats == stats


def test_finish_unknown_id_exits_nonzero(db):
    result = invoke(db, "finish", "999", "--json")
    assert result.exit_code == 1
    assert json.loads(result.stdout)["status"] == "error"


def test_suggest_popular_top_recent(db):
    for text in ("rails guides", "rails guides", "django"):
        invoke(db, "record", text, "--user", "u1", "--force")

    assert json.loads(invoke(db, "suggest", "guide", "--json").stdout) == ["rails guides"]
    assert json.loads(invoke(db, "popular", "--json").stdout) == ["rails guides", "django"]

    top = json.loads(invoke(db, "top", "--days", "1", "--json").stdout)
    assert top[0] == {"query": "rails guides", "count": 2}

    recent = json.loads(invoke(db, "recent", "--user", "u1", "--json").stdout)
    assert recent == ["django", "rails guides"]


def test_cleanup(db):
    invoke(db, "record", "ruby on", "--user", "u1")
    report = json.loads(
        invoke(db, "cleanup", "--user", "u1", "--final-text", "ruby on rails", "--json").stdout
    )
    assert report == {"deleted": 1, "merged": 0, "failed": False}


def test_human_mode_renders_table(db):
    invoke(db, "record", "ruby", "--force")
    result = runner.invoke(app, ["--human", "--db", str(db), "stats"])
    assert result.exit_code == 0
    assert "Global searches" in result.stdout
    assert "ruby" in result.stdout
