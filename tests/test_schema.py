"""Tests for SchemaInput, BinaryInput and include directory derivation."""

import pytest

from flatcrunner.schema import BinaryInput, SchemaInput, include_dirs_for, parent_dir


class TestIncludeDirs:
    def test_parent_dir(self):
        assert parent_dir("/a/b/c.fbs") == "/a/b"
        assert parent_dir("/c.fbs") == "/"

    def test_deduplicated_in_first_seen_order(self):
        paths = ["/s/a.fbs", "/s/inc/b.fbs", "/s/c.fbs", "/top.fbs"]
        assert include_dirs_for(paths) == ("/s", "/s/inc", "/")

    def test_schema_include_dirs(self, monster_schema):
        assert monster_schema.include_dirs == ("/schemas", "/schemas/include")


class TestSchemaInput:
    def test_entry_must_be_a_file(self):
        with pytest.raises(ValueError, match="is not one of the schema files"):
            SchemaInput(entry="/missing.fbs", files={"/a.fbs": "table A {}"})

    def test_paths_must_be_absolute(self):
        with pytest.raises(ValueError, match="must be absolute"):
            SchemaInput(entry="a.fbs", files={"a.fbs": ""})

    def test_files_are_snapshotted(self):
        """Mutating the caller's dict does not change the SchemaInput."""
        files = {"/a.fbs": "table A {}"}
        schema = SchemaInput(entry="/a.fbs", files=files)
        files["/a.fbs"] = "table B {}"
        files["/b.fbs"] = "table C {}"
        assert dict(schema.files) == {"/a.fbs": "table A {}"}

    def test_files_are_read_only(self, monster_schema):
        with pytest.raises(TypeError):
            monster_schema.files["/x.fbs"] = ""

    def test_bytes_like_content_is_frozen(self):
        schema = SchemaInput(entry="/a.fbs", files={"/a.fbs": bytearray(b"table A {}")})
        assert schema.files["/a.fbs"] == b"table A {}"
        assert isinstance(schema.files["/a.fbs"], bytes)

    def test_rejects_other_content(self):
        with pytest.raises(TypeError, match="must be str or bytes-like"):
            SchemaInput(entry="/a.fbs", files={"/a.fbs": 42})

    def test_coerce_mapping(self, monster_files):
        schema = SchemaInput.coerce({"entry": "/schemas/monster.fbs", "files": monster_files})
        assert schema.entry == "/schemas/monster.fbs"
        assert set(schema.files) == set(monster_files)

    def test_coerce_passes_through(self, monster_schema):
        assert SchemaInput.coerce(monster_schema) is monster_schema

    def test_coerce_rejects_incomplete_mapping(self):
        with pytest.raises(ValueError, match="missing 'files'"):
            SchemaInput.coerce({"entry": "/a.fbs"})


class TestSameTree:
    def test_equal_content_matches(self, monster_files):
        a = SchemaInput(entry="/schemas/monster.fbs", files=monster_files)
        b = SchemaInput(entry="/schemas/monster.fbs", files=dict(monster_files))
        assert a.same_tree(b)

    def test_different_entry(self, monster_files):
        a = SchemaInput(entry="/schemas/monster.fbs", files=monster_files)
        b = SchemaInput(entry="/schemas/include/vec3.fbs", files=monster_files)
        assert not a.same_tree(b)

    def test_single_file_edit(self, monster_files, monster_schema):
        edited = dict(monster_files, **{"/schemas/include/vec3.fbs": "struct Vec3 { x:int; }"})
        assert not monster_schema.same_tree(SchemaInput("/schemas/monster.fbs", edited))

    def test_rename_with_same_count(self, monster_files, monster_schema):
        renamed = {
            "/schemas/monster.fbs": monster_files["/schemas/monster.fbs"],
            "/schemas/include/vec3_renamed.fbs": monster_files["/schemas/include/vec3.fbs"],
        }
        assert not monster_schema.same_tree(SchemaInput("/schemas/monster.fbs", renamed))

    def test_added_file(self, monster_files, monster_schema):
        extended = dict(monster_files, **{"/schemas/extra.fbs": ""})
        assert not monster_schema.same_tree(SchemaInput("/schemas/monster.fbs", extended))

    def test_text_and_bytes_do_not_match(self):
        a = SchemaInput(entry="/a.fbs", files={"/a.fbs": "table A {}"})
        b = SchemaInput(entry="/a.fbs", files={"/a.fbs": b"table A {}"})
        assert not a.same_tree(b)


class TestBinaryInput:
    def test_requires_absolute_path(self):
        with pytest.raises(ValueError, match="must be absolute"):
            BinaryInput(path="input.mon", data=b"")

    def test_data_becomes_bytes(self):
        assert BinaryInput(path="/in.mon", data=bytearray(b"\x01\x02")).data == b"\x01\x02"
