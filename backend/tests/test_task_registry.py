import threading

from localingo.services.pdf_tasks.task_registry import PdfTaskMetadata, TaskRegistry


def _meta(task_id="t1"):
    return PdfTaskMetadata(task_id=task_id, filename="a.pdf", source_lang="en", target_lang="ja", pages=None)


def test_take_if_present_consumes_entry():
    registry = TaskRegistry()
    registry.insert(_meta())

    taken = registry.take_if_present("t1")
    assert taken is not None and taken.filename == "a.pdf"
    assert registry.take_if_present("t1") is None
    assert "t1" not in registry
    assert len(registry) == 0


def test_note_total_keeps_largest_total():
    registry = TaskRegistry()
    registry.insert(_meta())
    registry.note_total("t1", 3)
    registry.note_total("t1", 0)
    registry.note_total("t1", 2)
    registry.note_total("missing", 5)
    assert registry.get("t1").total_pages == 3


def test_only_one_racing_taker_wins():
    registry = TaskRegistry()
    registry.insert(_meta())
    winners = []
    barrier = threading.Barrier(8)

    def take():
        barrier.wait()
        if registry.take_if_present("t1") is not None:
            winners.append(1)

    threads = [threading.Thread(target=take) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert winners == [1]
