import json

from scripts.run_match import main, run_match


def test_run_match_fixture(fixtures_dir):
    response = run_match(fixtures_dir / "profile_la_liquor.json", fixtures_dir / "rules.json")

    assert response["business"]["name"] == "Sunset Liquor"
    assert response["count"] == 5
    assert [r["id"] for r in response["grouped"]["city"]] == ["la-btrc"]
    assert response["grouped"]["federal"][1]["dueDate"] == "2024-03-04"


def test_main_writes_filtered_output(fixtures_dir, tmp_path):
    out_path = tmp_path / "out" / "match.json"
    code = main(
        [
            "--profile",
            str(fixtures_dir / "profile_la_liquor.json"),
            "--rules",
            str(fixtures_dir / "rules.json"),
            "--levels",
            "state",
            "--no-reasons",
            "--limit",
            "1",
            "--output",
            str(out_path),
        ]
    )
    assert code == 0

    payload = json.loads(out_path.read_text())
    assert payload["grouped"]["federal"] == []
    assert [r["id"] for r in payload["grouped"]["state"]] == ["ca-abc-offsale"]
    assert "appliesBecause" not in payload["grouped"]["state"][0]
    assert payload["meta"]["countsByBucket"] == {"federal": 2, "state": 2, "city": 1}
