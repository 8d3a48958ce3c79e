import subprocess
import sys

from leaderboard.services.ingestion import validate_event
from leaderboard.services.producer import parse_producer_line


def test_data_gen_emits_valid_events(data_gen_script):
    result = subprocess.run(
        [sys.executable, str(data_gen_script), "--count", "5", "--interval", "0", "--seed", "7"],
        capture_output=True,
        text=True,
        timeout=30,
        check=True
    )

    lines = result.stdout.splitlines()
    assert len(lines) == 5

    events = [validate_event(parse_producer_line(line)) for line in lines]
    assert len({event.id for event in events}) == 5
    assert {event.category for event in events} <= {"Gryffindor", "Hufflepuff", "Ravenclaw", "Slytherin"}
    assert "emitted 5 events" in result.stderr
