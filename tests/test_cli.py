import json
from unittest.mock import MagicMock, patch

from typer.testing import CliRunner

from riskified_exchange.cli import app
from riskified_exchange.errors import ServerError

runner = CliRunner()


def test_sign_prints_signature(tmp_path):
    body = tmp_path / "empty.json"
    body.write_bytes(b"")

    result = runner.invoke(app, ["sign", str(body)], env={"RISKIFIED_AUTH_TOKEN": "secret"})

    assert result.exit_code == 0
    assert result.output.strip() == "f9e66e179b6747ae54108f82f8ade8b3c25d76fd30afde6c395822c530196169"


def test_sign_requires_secret(tmp_path):
    body = tmp_path / "body.json"
    body.write_bytes(b"{}")

    result = runner.invoke(app, ["sign", str(body), "--secret-env", "MISSING_SECRET_FOR_TEST"])

    assert result.exit_code == 2
    assert "MISSING_SECRET_FOR_TEST" in result.output


def test_verify_accepts_matching_signature(tmp_path):
    body = tmp_path / "body.json"
    body.write_bytes(b'{"order":{"id":"1"}}')

    result = runner.invoke(
        app,
        ["verify", str(body), "--signature", "7c6c102f95e9c475910f47362d3533ed4795dedb3dda965a152422313d6a0e2d"],
        env={"RISKIFIED_AUTH_TOKEN": "secret"},
    )

    assert result.exit_code == 0
    assert "Signature OK" in result.output


def test_verify_rejects_mismatch(tmp_path):
    body = tmp_path / "body.json"
    body.write_bytes(b'{"order":{"id":"1"}}')

    result = runner.invoke(app, ["verify", str(body), "--signature", "abc"], env={"RISKIFIED_AUTH_TOKEN": "secret"})

    assert result.exit_code == 1
    assert "mismatch" in result.output


@patch("riskified_exchange.cli.RiskifiedClient")
def test_send_posts_payload_and_prints_response(mock_client_cls, tmp_path):
    payload = tmp_path / "order.json"
    payload.write_text(json.dumps({"order": {"id": "1"}}))
    client = MagicMock()
    client.post_and_parse.return_value = {"order": {"id": "1", "status": "approved"}}
    mock_client_cls.from_config.return_value.__enter__.return_value = client

    result = runner.invoke(app, ["send", "/api/decide", str(payload), "--config", str(tmp_path / "none.json")])

    assert result.exit_code == 0
    assert '"approved"' in result.output
    client.post_and_parse.assert_called_once_with("/api/decide", {"order": {"id": "1"}}, object)


@patch("riskified_exchange.cli.RiskifiedClient")
def test_send_reports_exchange_errors(mock_client_cls, tmp_path):
    payload = tmp_path / "order.json"
    payload.write_text("{}")
    client = MagicMock()
    client.post_and_parse.side_effect = ServerError("bad hmac (Http Status code: Unauthorized)", 401)
    mock_client_cls.from_config.return_value.__enter__.return_value = client

    result = runner.invoke(app, ["send", "/api/decide", str(payload), "--config", str(tmp_path / "none.json")])

    assert result.exit_code == 1
    assert "server" in result.output
    assert "bad hmac" in result.output
