"""Tests for the rotalabs-conditions command line."""

import pytest

from rotalabs_conditions.cli import main


class TestValidate:
    """Tests for the validate command."""

    def test_all_valid(self, capsys):
        """Test valid expressions exit 0."""
        code = main(["validate", "perm a", "all [a; %b% > 1]"])

        out = capsys.readouterr().out
        assert code == 0
        assert "valid: perm a" in out
        assert "valid: all [a; %b% > 1]" in out

    def test_some_invalid(self, capsys):
        """Test an invalid expression exits 1."""
        code = main(["validate", "perm a", "all ["])

        out = capsys.readouterr().out
        assert code == 1
        assert "invalid: all [" in out


class TestDescribe:
    """Tests for the describe command."""

    def test_describe(self, capsys):
        """Test printing a tree description."""
        code = main(["describe", "all[a;any[b;!c]]"])

        assert code == 0
        assert capsys.readouterr().out.strip() == "all [permission: a; any [permission: b; NOT permission: c]]"

    def test_describe_invalid(self, capsys):
        """Test printing the parse error."""
        code = main(["describe", "any []"])

        captured = capsys.readouterr()
        assert code == 1
        assert "Empty condition list" in captured.err


class TestEvaluateCommand:
    """Tests for the test command."""

    def test_true(self, capsys):
        """Test an expression the subject satisfies."""
        code = main(["test", "all [perm vip; %level% >= 10]", "-p", "vip", "-a", "%level%=12"])

        assert code == 0
        assert capsys.readouterr().out.strip() == "true"

    def test_false(self, capsys):
        """Test an expression the subject does not satisfy."""
        code = main(["test", "perm vip"])

        assert code == 0
        assert capsys.readouterr().out.strip() == "false"

    def test_no_attributes(self, capsys):
        """Test attribute leaves fail closed without a resolver."""
        code = main(["test", "%level% >= 10", "-a", "%level%=12", "--no-attributes"])

        assert code == 0
        assert capsys.readouterr().out.strip() == "false"

    def test_invalid_expression(self, capsys):
        """Test invalid expressions exit 1."""
        code = main(["test", "all [perm vip"])

        assert code == 1
        assert "invalid expression" in capsys.readouterr().err

    def test_bad_attribute_assignment(self, capsys):
        """Test malformed -a values are reported."""
        code = main(["test", "%level%", "-a", "level"])

        assert code == 2
        assert "Invalid attribute assignment" in capsys.readouterr().err


class TestCheck:
    """Tests for the check command."""

    @pytest.fixture
    def config_path(self, tmp_path):
        path = tmp_path / "gates.yaml"
        path.write_text(
            "gates:\n"
            "  lounge:\n"
            "    conditions:\n"
            "      - perm lounge.enter\n"
            "      - \"%level% >= 10\"\n"
            "  staff:\n"
            "    mode: any\n"
            "    conditions:\n"
            "      - perm staff.mod\n"
            "      - perm staff.admin\n",
            encoding="utf-8",
        )
        return path

    def test_check_all_gates(self, capsys, config_path):
        """Test evaluating every gate."""
        code = main(["check", str(config_path), "-p", "lounge.enter", "-a", "%level%=20"])

        out = capsys.readouterr().out
        assert code == 0
        assert "lounge: pass" in out
        assert "staff: fail" in out

    def test_check_single_gate(self, capsys, config_path):
        """Test evaluating a single gate."""
        code = main(["check", str(config_path), "--gate", "staff", "-p", "staff.admin"])

        out = capsys.readouterr().out
        assert code == 0
        assert out.strip() == "staff: pass"

    def test_unknown_gate(self, capsys, config_path):
        """Test an unknown gate name."""
        code = main(["check", str(config_path), "--gate", "missing"])

        assert code == 1
        assert "unknown gate" in capsys.readouterr().err

    def test_missing_file(self, capsys, tmp_path):
        """Test a missing config file is reported."""
        code = main(["check", str(tmp_path / "nope.yaml")])

        assert code == 2
        assert "Error" in capsys.readouterr().err


def test_no_command_prints_help(capsys):
    """Test running without a command prints usage."""
    assert main([]) == 0
    assert "usage" in capsys.readouterr().out
