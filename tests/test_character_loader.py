"""Tests for loading D&D Beyond character exports."""

import json
from pathlib import Path

import pytest

from ddb_foundry.importers.base import CharacterImportError
from ddb_foundry.importers.dndbeyond.common import unwrap_character
from ddb_foundry.importers.dndbeyond.loader import (
    parse_character_json,
    read_character_file,
    validate_character,
)


class TestReadCharacterFile:
    """Test reading character data from local JSON files."""

    def test_read_envelope(self, fixtures_dir: Path):
        """The API envelope is removed."""
        data = read_character_file(fixtures_dir / "ddb_cleric_sample.json")
        assert data["id"] == 48213377
        assert data["name"] == "Sister Maren Ashvale"

    def test_read_bare_character(self, tmp_path: Path):
        path = tmp_path / "bare.json"
        path.write_text(json.dumps({"name": "Bare", "stats": [], "classes": []}))
        assert read_character_file(str(path))["name"] == "Bare"

    def test_file_not_found(self, tmp_path: Path):
        with pytest.raises(CharacterImportError) as exc_info:
            read_character_file(tmp_path / "missing.json")
        assert "not found" in str(exc_info.value)

    def test_directory_is_not_a_file(self, tmp_path: Path):
        with pytest.raises(CharacterImportError):
            read_character_file(tmp_path)

    def test_invalid_json_names_the_file(self, tmp_path: Path):
        path = tmp_path / "broken.json"
        path.write_text('{"stats": [],\n  oops}')
        with pytest.raises(CharacterImportError) as exc_info:
            read_character_file(path)
        message = str(exc_info.value)
        assert message.startswith("broken.json is not valid JSON (line 2")


class TestValidateCharacter:
    def test_not_an_object(self):
        with pytest.raises(CharacterImportError) as exc_info:
            validate_character([1, 2, 3])
        assert "got list" in str(exc_info.value)

    def test_service_error_response(self):
        payload = {"success": False, "message": "Character is private", "data": None}
        with pytest.raises(CharacterImportError) as exc_info:
            validate_character(payload)
        assert "Character is private" in str(exc_info.value)

    def test_missing_required_collections(self):
        with pytest.raises(CharacterImportError) as exc_info:
            validate_character({"data": {"name": "No stats"}})
        assert "missing stats, classes" in str(exc_info.value)

    def test_wrong_collection_types(self):
        with pytest.raises(CharacterImportError) as exc_info:
            validate_character({"stats": {}, "classes": [], "inventory": "none", "race": []})
        message = str(exc_info.value)
        assert "stats should be a list, got dict" in message
        assert "inventory should be a list, got str" in message
        assert "race should be an object, got list" in message

    def test_null_optional_collections_allowed(self):
        character = {"stats": [], "classes": [], "inventory": None, "race": None}
        assert validate_character(character) is character

    def test_modifier_list_allowed(self):
        character = {"stats": [], "classes": [], "modifiers": [{"type": "bonus"}]}
        assert validate_character(character) is character

    def test_parse_text(self, ddb_envelope):
        character = parse_character_json(json.dumps(ddb_envelope))
        assert character["id"] == 48213377

    def test_parse_origin_in_error(self):
        with pytest.raises(CharacterImportError) as exc_info:
            parse_character_json("nope", origin="upload")
        assert str(exc_info.value).startswith("upload is not valid JSON")


class TestUnwrapCharacter:
    def test_envelope(self):
        assert unwrap_character({"success": True, "data": {"id": 1}}) == {"id": 1}

    def test_bare_character_kept(self):
        character = {"stats": [], "data": {"unrelated": True}}
        assert unwrap_character(character) is character

    def test_non_mapping(self):
        assert unwrap_character(None) == {}
        assert unwrap_character([1]) == {}
