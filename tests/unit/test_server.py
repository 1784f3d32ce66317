"""Unit tests for project root resolution in the MCP server."""

import pytest

import main


class TestResolveRoot:
    """Test cases for _resolve_root."""

    def test_explicit_root(self, tmp_path):
        """Test that an explicit root wins."""
        assert main._resolve_root(str(tmp_path)) == tmp_path.resolve()

    def test_explicit_root_must_exist(self, tmp_path):
        """Test that a missing root is rejected."""
        with pytest.raises(ValueError, match="does not exist"):
            main._resolve_root(str(tmp_path / "missing"))

    def test_environment_root(self, tmp_path, monkeypatch):
        """Test the UXKIT_PROJECT_ROOT environment variable."""
        monkeypatch.setenv("UXKIT_PROJECT_ROOT", str(tmp_path))
        assert main._resolve_root(None) == tmp_path.resolve()

    def test_ancestor_with_marker(self, tmp_path, monkeypatch):
        """Test detection of the nearest ancestor containing .uxkit."""
        monkeypatch.delenv("UXKIT_PROJECT_ROOT", raising=False)
        (tmp_path / ".uxkit").mkdir()
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        assert main._resolve_root(None) == tmp_path.resolve()

    def test_cwd_fallback_for_initialization(self, tmp_path, monkeypatch):
        """Test that init_project may fall back to the working directory."""
        monkeypatch.delenv("UXKIT_PROJECT_ROOT", raising=False)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(main, "_locate_project_root", lambda: None)
        assert main._resolve_root(None, allow_cwd=True) == tmp_path.resolve()
        with pytest.raises(ValueError, match="Unable to determine project root"):
            main._resolve_root(None)


class TestTools:
    """Test cases for tool functions called directly."""

    def test_init_and_create_study(self, tmp_path):
        """Test the tool functions end to end with an explicit root."""
        assert main.init_project(root=str(tmp_path))["already_initialized"] is False
        result = main.create_study("Navigation", root=str(tmp_path))
        assert result["study_id"] == "001-navigation"
        assert main.list_studies(root=str(tmp_path))["count"] == 1


class TestPackage:
    """Test cases for the uxkit package namespace."""

    def test_star_import(self):
        """Test that a star import of the package succeeds."""
        namespace = {}
        exec("from uxkit import *", namespace)
        assert "ResearchWorkflow" not in namespace
