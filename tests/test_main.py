"""Tests for the command-line entry point."""

import json
from unittest.mock import Mock, patch

import pytest

import main
from statement_verifier.pipeline.runner import StatementPipeline
from statement_verifier.utils.exceptions import PDFNotFoundError, SchemaValidationError
from statement_verifier.utils.validators import ValidationError


@pytest.fixture
def cli_environment(sample_settings):
    """Keep the CLI away from .env files and the real log directory."""
    with patch("main.load_dotenv"), \
            patch("main.Settings.from_env", return_value=sample_settings), \
            patch("main.setup_logger"):
        yield sample_settings


@pytest.fixture
def mock_verifier(cli_environment):
    with patch("main.StatementVerifier") as verifier_cls:
        yield verifier_cls.return_value


class TestParseArguments:
    """Test cases for argument parsing."""

    def test_pdf_file(self):
        args = main.parse_arguments(["--pdf-file", "s.pdf", "--password", "pw", "--json"])

        assert args.pdf_file == "s.pdf"
        assert args.password == "pw"
        assert args.json
        assert args.report_dir is None

    def test_modes_are_exclusive(self):
        with pytest.raises(SystemExit):
            main.parse_arguments(["--pdf-file", "s.pdf", "--health"])

    def test_mode_required(self):
        with pytest.raises(SystemExit):
            main.parse_arguments([])


class TestMain:
    """Test cases for main()."""

    def test_completed_statement(self, mock_verifier, completed_result, capsys):
        """Test the printed findings for a verified statement."""
        mock_verifier.verify.return_value = completed_result

        exit_code = main.main(["--pdf-file", completed_result.source_file])

        out = capsys.readouterr().out
        assert exit_code == main.EXIT_OK
        assert out.startswith("Starting...")
        assert "Document is a statement (confidence 95)" in out
        assert "Name: Jane Doe" in out
        assert "Transaction details are valid" in out
        assert "Original balance: £1,000.00" in out
        assert "Fraud likelihood: 12" in out
        assert "[low] Logo slightly blurred" in out

    def test_rejected_statement(self, mock_verifier, rejected_result, capsys):
        mock_verifier.verify.return_value = rejected_result

        exit_code = main.main(["--pdf-file", rejected_result.source_file])

        assert exit_code == main.EXIT_REJECTED
        assert "not a statement" in capsys.readouterr().out

    def test_json_output(self, mock_verifier, completed_result, capsys):
        mock_verifier.verify.return_value = completed_result

        main.main(["--pdf-file", completed_result.source_file, "--json"])

        out = capsys.readouterr().out
        data = json.loads(out[out.index("{"):])
        assert data["status"] == "completed"
        assert data["balance_check"]["is_balanced"] is True

    def test_missing_file(self, mock_verifier, capsys):
        """Test that a missing PDF exits with an error."""
        mock_verifier.verify.side_effect = PDFNotFoundError("PDF file not found at path: nope.pdf")

        exit_code = main.main(["--pdf-file", "nope.pdf"])

        assert exit_code == main.EXIT_FAILED
        assert "Error: PDF file not found" in capsys.readouterr().out

    def test_stage_failure(self, mock_verifier, capsys):
        mock_verifier.verify.side_effect = SchemaValidationError("TransactionDetails response was empty")

        assert main.main(["--pdf-file", "s.pdf"]) == main.EXIT_FAILED

    def test_unexpected_error(self, mock_verifier, capsys):
        mock_verifier.verify.side_effect = RuntimeError("boom")

        assert main.main(["--pdf-file", "s.pdf"]) == main.EXIT_FAILED
        assert "Unexpected error: boom" in capsys.readouterr().out

    def test_keyboard_interrupt(self, mock_verifier):
        mock_verifier.verify.side_effect = KeyboardInterrupt

        assert main.main(["--pdf-file", "s.pdf"]) == 130

    def test_health(self, cli_environment, capsys):
        report = {"status": "degraded", "components": {}, "alerts": ["broker"]}
        with patch("main.HealthChecker") as checker_cls:
            checker_cls.return_value.run_health_check.return_value = report
            exit_code = main.main(["--health"])

        assert exit_code == main.EXIT_OK
        assert json.loads(capsys.readouterr().out)["status"] == "degraded"

    def test_health_unhealthy(self, cli_environment, capsys):
        with patch("main.HealthChecker") as checker_cls:
            checker_cls.return_value.run_health_check.return_value = {"status": "unhealthy"}
            assert main.main(["--health"]) == main.EXIT_FAILED

    def test_missing_api_key(self, cli_environment, sample_pdf_file, capsys):
        """Test that a missing API key is reported before any work starts."""
        cli_environment.openai_api_key = None

        exit_code = main.main(["--pdf-file", sample_pdf_file])

        assert exit_code == main.EXIT_FAILED
        assert "OPENAI_API_KEY" in capsys.readouterr().out

    def test_config_file_overrides(self, cli_environment, temp_dir, mock_verifier, rejected_result):
        config_file = temp_dir / "config.json"
        config_file.write_text(json.dumps({"acceptance_threshold": 90}))
        mock_verifier.verify.return_value = rejected_result

        main.main(["--pdf-file", "s.pdf", "--config", str(config_file)])

        assert cli_environment.acceptance_threshold == 90

    def test_invalid_config_file(self, cli_environment, temp_dir, capsys):
        config_file = temp_dir / "config.json"
        config_file.write_text(json.dumps({"acceptance_threshold": 250}))

        assert main.main(["--pdf-file", "s.pdf", "--config", str(config_file)]) == main.EXIT_FAILED
        assert "Invalid settings" in capsys.readouterr().out


class TestStatementVerifier:
    """Test cases for StatementVerifier."""

    def test_report_written_for_completed(self, sample_settings, completed_result, temp_dir):
        pipeline = Mock(spec=StatementPipeline)
        pipeline.run.return_value = completed_result
        verifier = main.StatementVerifier(sample_settings, pipeline=pipeline)

        with patch.object(verifier.converter, "create_report") as create_report:
            verifier.verify(completed_result.source_file, report_dir=str(temp_dir))

        create_report.assert_called_once_with(completed_result, str(temp_dir))

    def test_no_report_for_rejected(self, sample_settings, rejected_result, temp_dir):
        pipeline = Mock(spec=StatementPipeline)
        pipeline.run.return_value = rejected_result
        verifier = main.StatementVerifier(sample_settings, pipeline=pipeline)

        with patch.object(verifier.converter, "create_report") as create_report:
            verifier.verify(rejected_result.source_file, report_dir=str(temp_dir))

        create_report.assert_not_called()

    def test_blank_password_rejected(self, sample_settings):
        pipeline = Mock(spec=StatementPipeline)
        verifier = main.StatementVerifier(sample_settings, pipeline=pipeline)

        with pytest.raises(ValidationError):
            verifier.verify("s.pdf", password="  ")

        pipeline.run.assert_not_called()
