"""
基础测试 - 验证测试框架正常工作
"""

from pathlib import Path

from conftest import SELF_WXID


def test_temp_dir_fixture(temp_dir):
    """测试临时目录 fixture"""
    assert temp_dir.exists()
    assert temp_dir.is_dir()


def test_data_path_fixture(data_path):
    """测试模拟账号目录 fixture"""
    assert data_path.name == SELF_WXID
    assert (data_path / "Msg" / "MicroMsg.db").exists()
    assert (data_path / "Msg" / "Multi" / "MSG0.db").exists()
    for sub in ("Cache", "MsgAttach", "Voice", "File"):
        assert (data_path / "FileStorage" / sub).is_dir()


def test_project_structure():
    """测试项目结构是否正确"""
    project_root = Path(__file__).parent.parent

    assert (project_root / "wechat_transcript").exists()
    assert (project_root / "wechat_transcript" / "__init__.py").exists()
    assert (project_root / "wechat_transcript" / "core").exists()
    assert (project_root / "wechat_transcript" / "api").exists()
    assert (project_root / "pyproject.toml").exists()
