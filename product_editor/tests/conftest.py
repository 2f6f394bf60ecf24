import pytest

from test_support import CATEGORIES, FakeClient, ImmediateRunner, ManualRunner, subcategory_responses


@pytest.fixture
def fake_client():
    responses = {"/categories": CATEGORIES}
    responses.update(subcategory_responses(7))
    responses.update(subcategory_responses(8))
    return FakeClient(responses)


@pytest.fixture
def immediate_runner():
    return ImmediateRunner()


@pytest.fixture
def manual_runner():
    return ManualRunner()


@pytest.fixture
def tk_root():
    tk = pytest.importorskip("tkinter")
    try:
        root = tk.Tk()
    except tk.TclError as exc:
        pytest.skip(f"No display available: {exc}")
    root.withdraw()
    yield root
    root.destroy()
