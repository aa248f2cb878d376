import pytest

from localingo.services.pdf_tasks.artifact_store import ArtifactStore, artifact_name, make_timestamp


def test_artifact_name_layout():
    assert artifact_name("20250101_120000", "abc-123", "mono") == "20250101_120000_abc-123_mono.pdf"


def test_timestamp_format():
    stamp = make_timestamp()
    assert len(stamp) == 15 and stamp[8] == "_"


@pytest.mark.parametrize("task_id", ["", "../etc", "a/b", ".."])
def test_rejects_unsafe_task_ids(task_id):
    with pytest.raises(ValueError):
        artifact_name("20250101_120000", task_id, "mono")


def test_rejects_unknown_role():
    with pytest.raises(ValueError):
        artifact_name("20250101_120000", "abc", "triple")


def test_save_and_find(tmp_path):
    store = ArtifactStore(tmp_path / "pdfs")
    path = store.save(artifact_name("20250101_120000", "abc", "dual"), b"%PDF")

    assert path.read_bytes() == b"%PDF"
    assert store.find("abc", "dual") == path
    assert store.find("abc", "mono") is None
    assert store.has("abc", "dual")


def test_find_does_not_match_other_task_with_common_suffix(tmp_path):
    store = ArtifactStore(tmp_path)
    store.save(artifact_name("20250101_120000", "xabc", "mono"), b"%PDF")
    assert store.find("abc", "mono") is None


def test_find_does_not_match_task_id_ending_in_underscore_suffix(tmp_path):
    store = ArtifactStore(tmp_path)
    other = store.save(artifact_name("20250101_120000", "x_abc", "mono"), b"%PDF-other")
    assert store.find("abc", "mono") is None
    assert store.find("x_abc", "mono") == other

    own = store.save(artifact_name("20250102_080000", "abc", "mono"), b"%PDF-own")
    assert store.find("abc", "mono") == own


def test_find_on_missing_directory(tmp_path):
    assert ArtifactStore(tmp_path / "missing").find("abc", "mono") is None


def test_save_rejects_paths(tmp_path):
    with pytest.raises(ValueError):
        ArtifactStore(tmp_path).save("../escape.pdf", b"x")
