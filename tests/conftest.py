import pytest

import progress


@pytest.fixture(autouse=True)
def isolated_progress_state(tmp_path_factory, monkeypatch):
    # keep the persisted progress snapshot out of the working tree
    state = tmp_path_factory.mktemp("progress") / "progress_state.json"
    monkeypatch.setattr(progress, "STATE_FILE", state)
    monkeypatch.setattr(progress, "STATE_FILE_TMP", state.with_name(state.name + ".tmp"))
    monkeypatch.setattr(progress, "_LAST_STATE_MTIME", 0.0)
    yield state
