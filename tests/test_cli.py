from click.testing import CliRunner

from extractor.cli import cli


def test_extract_rejects_invalid_url():
    result = CliRunner().invoke(cli, ["extract", "ftp://shop.example.com/file"])

    assert result.exit_code == 1
    assert "missing url" in result.output


def test_extract_rejects_zero_attempts():
    result = CliRunner().invoke(cli, ["extract", "https://shop.example.com/p/1", "--attempts", "0"])

    assert result.exit_code == 2
    assert "--attempts" in result.output
