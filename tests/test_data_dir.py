"""
Tests for account data directory checks.
"""

import pytest

from conftest import SELF_WXID, create_mock_msg

from wechat_transcript.core.data_dir import (
    DataDirError,
    get_message_db_paths,
    guess_self_wxid,
    validate_data_dir,
)


class TestValidateDataDir:
    def test_valid(self, data_path):
        assert validate_data_dir(str(data_path)) is True

    def test_missing_dir(self, temp_dir):
        assert validate_data_dir(str(temp_dir / "nope")) is False

    def test_file_instead_of_dir(self, temp_dir):
        f = temp_dir / "file"
        f.write_text("x")
        assert validate_data_dir(str(f)) is False

    def test_empty_micromsg(self, data_path):
        (data_path / "Msg" / "MicroMsg.db").write_bytes(b"")
        assert validate_data_dir(str(data_path)) is False

    def test_no_message_store(self, data_path):
        (data_path / "Msg" / "Multi" / "MSG0.db").unlink()
        assert validate_data_dir(str(data_path)) is False


class TestMessageDbPaths:
    def test_gap_stops_listing(self, data_path):
        multi = data_path / "Msg" / "Multi"
        create_mock_msg(multi / "MSG2.db")
        assert [p.rsplit("/", 1)[-1] for p in get_message_db_paths(str(data_path))] == [
            "MSG0.db"
        ]

    def test_msg_db_then_numbered(self, data_path):
        multi = data_path / "Msg" / "Multi"
        (multi / "MSG0.db").unlink()
        create_mock_msg(multi / "MSG.db")
        create_mock_msg(multi / "MSG1.db")
        paths = get_message_db_paths(str(data_path))
        assert paths == [str(multi / "MSG.db"), str(multi / "MSG1.db")]

    def test_missing_multi(self, temp_dir):
        assert get_message_db_paths(str(temp_dir)) == []


class TestGuessSelfWxid:
    def test_from_dir_name(self, data_path):
        assert guess_self_wxid(str(data_path)) == SELF_WXID

    def test_not_a_wxid(self, temp_dir):
        with pytest.raises(DataDirError):
            guess_self_wxid(str(temp_dir / "custom_name"))
