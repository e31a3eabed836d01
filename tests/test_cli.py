import pytest

from frostsig.cli import main


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["server"],
        ["client"],
        ["server", "keygen", "3"],
        ["server", "sign"],
        ["client", "keygen"],
        ["client", "sign"],
    ],
)
def test_missing_arguments(argv, capsys):
    assert main(argv) == 2
    assert capsys.readouterr().err == "Failed to give enough arguments.\n"


@pytest.mark.parametrize(
    "argv",
    [
        ["server", "keygen", "three", "2"],
        ["server", "keygen", "3", "2.5"],
        ["server", "sign", "-1", "2"],
        ["server", "sign", "3", "4294967296"],
        ["server", "keygen", " 3", "2"],
    ],
)
def test_invalid_numbers(argv, capsys):
    assert main(argv) == 2
    assert capsys.readouterr().err == "Invalid arguments.\n"


def test_unknown_operation_is_reported(capsys):
    assert main(["client", "dance", "x"]) == 0
    assert capsys.readouterr().err == "Invalid arguments.\n"


def test_unknown_mode_is_reported(capsys):
    assert main(["observer", "keygen"]) == 0
    assert capsys.readouterr().err == "Invalid arguments.\n"


def test_sign_client_with_missing_file_fails(tmp_path, capsys):
    missing = tmp_path / "missing.json"
    assert main(["client", "sign", str(missing)]) == 1
    err = capsys.readouterr().err
    assert err.startswith("Error: ")
    assert "missing.json" in err


def test_sign_client_with_malformed_file_fails(tmp_path, capsys):
    path = tmp_path / "broken.json"
    path.write_text("[]", encoding="utf-8")
    assert main(["client", "sign", str(path)]) == 1
    assert "A sign input must be a JSON object." in capsys.readouterr().err