"""CLI tests (mock provider, no network)."""

from click.testing import CliRunner

from markup_agent.cli.main import cli
from markup_agent.provider import MOCK_RESPONSE


class TestRunCommand:
    """run 명령 테스트."""

    def test_run_with_mock_provider(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(
            cli, ["run", "hello", "--provider", "mock", "--workspace", str(tmp_path)]
        )
        assert result.exit_code == 0, result.output
        assert MOCK_RESPONSE in result.output
        assert "waiting" in result.output

    def test_unknown_session(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["run", "hello", "--provider", "mock", "--session", "missing",
             "--db", str(tmp_path / "h.db"), "--workspace", str(tmp_path)],
        )
        assert result.exit_code == 1
        assert "No stored history" in result.output


class TestHistoryCommand:
    """history 명령 테스트."""

    def test_list_and_show(self, tmp_path):
        runner = CliRunner()
        db = str(tmp_path / "h.db")
        runner.invoke(
            cli, ["run", "hello", "--provider", "mock", "--db", db, "--workspace", str(tmp_path)]
        )

        listed = runner.invoke(cli, ["history", "--db", db])
        assert listed.exit_code == 0
        session_ids = listed.output.split()
        assert len(session_ids) == 1

        shown = runner.invoke(cli, ["history", session_ids[0], "--db", db])
        assert shown.exit_code == 0
        assert "hello" in shown.output
        assert MOCK_RESPONSE in shown.output
