import pytest

import run
from cellfib import db
from cellfib.fib import encode_pos
from cellfib.models import PartitionState


def test_version_flag(capsys):
    with pytest.raises(SystemExit) as exc:
        run.parse_args(["--version"])
    assert exc.value.code == 0
    assert "cellfib" in capsys.readouterr().out


def test_default_command_is_server():
    assert run.parse_args([]).command == "server"
    args = run.parse_args(["server", "--port", "8080"])
    assert args.port == 8080


def test_show_and_reset(app_ctx, capsys):
    db.session.add(
        PartitionState(
            partition_id="overworld-1",
            partition_class="overworld",
            data={"fiblib": {"ore": [encode_pos((1, -2, 3))]}},
        )
    )
    db.session.commit()

    assert run.main(["show", "overworld-1"]) == 0
    out = capsys.readouterr().out
    assert '"ore"' in out and "-2" in out

    assert run.main(["reset", "overworld-1"]) == 0
    assert run.main(["show", "overworld-1"]) == 1
    assert run.main(["reset", "overworld-1"]) == 1
