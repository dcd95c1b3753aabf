"""
Integration tests: TranslationPipeline (ordenação + fatiamento + agendador)
"""
import asyncio

import pytest

from core.constants import ItemStatus, ReadingMode, SortOrder
from core.exceptions import TranslationError
from core.pipeline import PageSource, TranslationOptions, TranslationPipeline
from core.scheduling.scheduler import SchedulerOptions
from core.test_utils import make_flat_image, make_strip, raster_bytes
from core.translation.echo_worker import EchoWorker
from core.utils.image_ops import stack_vertically


class FlakyWorker:
    """Falha nas primeiras `failures` chamadas, depois devolve a imagem."""

    def __init__(self, failures: int = 1):
        self.failures = failures
        self.calls = 0

    async def translate(self, image_bytes, mime_type, target_language, context=None):
        self.calls += 1
        if self.calls <= self.failures:
            raise TranslationError("quota exceeded")
        return image_bytes


class RecordingWorker:
    """Registra idioma e memória de cada chamada; avisa quando a primeira começa."""

    def __init__(self, delay: float = 0.01):
        self.delay = delay
        self.seen = []
        self.started = None

    async def translate(self, image_bytes, mime_type, target_language, context=None):
        self.seen.append((target_language, context))
        if self.started is not None:
            self.started.set()
        await asyncio.sleep(self.delay)
        return image_bytes


class GarbageWorker:
    async def translate(self, image_bytes, mime_type, target_language, context=None):
        return b"<html>rate limited</html>"


def _page(name, raster):
    return PageSource(name=name, data=raster_bytes(raster), mime_type="image/png")


def _fast_options():
    return SchedulerOptions(concurrency_limit=5, rpm_limit=1000, idle_poll=0.01)


@pytest.mark.high
class TestPipelineManhwa:

    def test_long_strip_end_to_end(self, long_strip):
        worker = EchoWorker()
        pipeline = TranslationPipeline(worker, scheduler_options=_fast_options())

        stats = asyncio.run(pipeline.run(
            [_page("chapter_01.png", long_strip)],
            TranslationOptions(mode=ReadingMode.MANHWA),
        ))

        assert stats.total == 4
        assert stats.completed == 4
        assert [item.name for item in pipeline.items] == [
            "chapter_01_part_1.png",
            "chapter_01_part_2.png",
            "chapter_01_part_3.png",
            "chapter_01_part_4.png",
        ]
        assert [item.source_image.height for item in pipeline.items] == [2459, 2531, 2570, 440]
        assert worker.calls == 4

        rebuilt = stack_vertically([item.result for item in pipeline.items])
        assert rebuilt.same_pixels(long_strip)

    def test_manhwa_pages_ascending(self):
        pages = [_page(f"ep_{n}.png", make_strip(500, seed=n)) for n in (3, 1, 2)]
        pipeline = TranslationPipeline(EchoWorker(), scheduler_options=_fast_options())

        items = asyncio.run(pipeline.prepare_pages(pages, TranslationOptions(mode=ReadingMode.MANHWA)))

        assert [i.name for i in items] == ["ep_1.png", "ep_2.png", "ep_3.png"]
        assert [i.page_number for i in items] == [1, 2, 3]


class TestPipelineManga:

    def test_manga_pages_descending_and_not_sliced(self, noise_strip):
        pages = [_page("p1.png", make_strip(500)), _page("p2.png", noise_strip)]
        pipeline = TranslationPipeline(EchoWorker(), scheduler_options=_fast_options())

        asyncio.run(pipeline.run(pages, TranslationOptions(mode=ReadingMode.MANGA)))

        assert [i.name for i in pipeline.items] == ["p2.png", "p1.png"]
        assert pipeline.items[0].source_image.height == 8000

    def test_explicit_ascending(self):
        pages = [_page("p2.png", make_strip(300)), _page("p1.png", make_strip(300))]
        pipeline = TranslationPipeline(EchoWorker(), scheduler_options=_fast_options())

        items = asyncio.run(pipeline.prepare_pages(
            pages, TranslationOptions(mode=ReadingMode.MANGA, sort_order=SortOrder.ASC)
        ))
        assert [i.name for i in items] == ["p1.png", "p2.png"]

    def test_undecodable_file_skipped(self):
        pages = [
            PageSource(name="p1.png", data=b"not an image"),
            _page("p2.png", make_strip(300)),
        ]
        pipeline = TranslationPipeline(EchoWorker(), scheduler_options=_fast_options())
        stats = asyncio.run(pipeline.run(pages))

        assert stats.total == 1
        assert pipeline.items[0].name == "p2.png"


class TestPipelineBehaviour:

    def test_blank_page_skips_worker(self):
        worker = EchoWorker()
        pipeline = TranslationPipeline(worker, scheduler_options=_fast_options())
        stats = asyncio.run(pipeline.run([_page("blank_1.png", make_flat_image(600))]))

        assert stats.completed == 1
        assert pipeline.items[0].synthetic is True
        assert worker.calls == 0

    def test_prefilter_can_be_disabled(self):
        worker = EchoWorker()
        pipeline = TranslationPipeline(worker, scheduler_options=_fast_options(), use_prefilter=False)
        asyncio.run(pipeline.run([_page("blank_1.png", make_flat_image(600))]))
        assert worker.calls == 1

    def test_failure_then_regenerate(self):
        worker = FlakyWorker(failures=1)
        pipeline = TranslationPipeline(worker, scheduler_options=_fast_options())

        stats = asyncio.run(pipeline.run([_page("p1.png", make_strip(300))]))
        item = pipeline.items[0]
        assert stats.error == 1
        assert "quota" in item.error

        pipeline.regenerate(item.id)
        stats = asyncio.run(pipeline.translate_all())

        assert stats.completed == 1
        assert item.status is ItemStatus.COMPLETED
        assert item.error is None

    def test_failing_echo_worker_marks_error_then_recovers(self):
        worker = EchoWorker(fail=True)
        pipeline = TranslationPipeline(worker, scheduler_options=_fast_options(), use_prefilter=False)

        stats = asyncio.run(pipeline.run([_page("p1.png", make_strip(300))]))
        item = pipeline.items[0]
        assert stats.error == 1
        assert "simulada" in item.error
        assert pipeline.context.last_summary == "Start of chapter."

        worker.fail = False
        pipeline.regenerate(item.id)
        stats = asyncio.run(pipeline.translate_all())

        assert stats.completed == 1
        assert worker.calls == 2

    def test_invalid_worker_output_is_an_error(self):
        pipeline = TranslationPipeline(GarbageWorker(), scheduler_options=_fast_options())
        stats = asyncio.run(pipeline.run([_page("p1.png", make_strip(300))]))
        assert stats.error == 1
        assert "inválida" in pipeline.items[0].error

    def test_context_reset_per_batch(self):
        pipeline = TranslationPipeline(EchoWorker(), scheduler_options=_fast_options())
        pipeline.context.merge({"old": "term"})

        asyncio.run(pipeline.run([_page("p1.png", make_strip(300))]))

        assert pipeline.context.glossary == {}
        assert "processada" in pipeline.context.last_summary

    def test_progress_callback(self):
        updates = []
        pipeline = TranslationPipeline(EchoWorker(), scheduler_options=_fast_options())
        pipeline.set_progress_callback(lambda done, total: updates.append((done, total)))

        asyncio.run(pipeline.run([_page(f"p{n}.png", make_strip(300, seed=n)) for n in range(3)]))

        assert updates[-1] == (3, 3)

    def test_worker_receives_language_and_context(self, mock_worker):
        pipeline = TranslationPipeline(mock_worker, scheduler_options=_fast_options())
        asyncio.run(pipeline.run(
            [_page("p1.png", make_strip(300))],
            TranslationOptions(target_language="en"),
        ))

        mock_worker.translate.assert_awaited_once()
        args = mock_worker.translate.await_args.args
        assert args[1] == "image/png"
        assert args[2] == "en"
        assert args[3] is pipeline.context

    def test_overlapping_batches_keep_their_language_and_context(self):
        worker = RecordingWorker()
        pipeline = TranslationPipeline(
            worker,
            scheduler_options=SchedulerOptions(concurrency_limit=1, rpm_limit=1000, idle_poll=0.01),
            use_prefilter=False,
        )
        first_batch = [_page(f"a{n}.png", make_strip(300, seed=n)) for n in range(4)]
        second_batch = [_page("b1.png", make_strip(300, seed=9))]

        async def scenario():
            worker.started = asyncio.Event()
            await pipeline.prepare_pages(first_batch, TranslationOptions(target_language="en"))
            first_context = pipeline.context
            runner = asyncio.create_task(pipeline.translate_all())
            await worker.started.wait()
            await pipeline.prepare_pages(second_batch, TranslationOptions(target_language="ru"))
            stats = await runner
            return first_context, stats

        first_context, stats = asyncio.run(scenario())

        assert stats.completed == 5
        languages = [language for language, _ in worker.seen]
        assert languages.count("en") == 4
        assert languages.count("ru") == 1
        for language, context in worker.seen:
            if language == "en":
                assert context is first_context
            else:
                assert context is pipeline.context
        assert pipeline.context is not first_context
        en_items = [item for item in pipeline.items if item.target_language == "en"]
        assert len(en_items) == 4

    def test_slicing_failure_enqueues_whole_page(self, mocker, mock_worker, long_strip):
        pipeline = TranslationPipeline(mock_worker, scheduler_options=_fast_options())
        mocker.patch.object(pipeline.slicer, "split", side_effect=RuntimeError("boom"))

        items = asyncio.run(pipeline.prepare_pages(
            [_page("ep_1.png", long_strip)], TranslationOptions(mode=ReadingMode.MANHWA)
        ))

        assert len(items) == 1
        assert items[0].name == "ep_1.png"
        assert items[0].source_image.height == 8000

    def test_unsupported_language(self):
        with pytest.raises(ValueError):
            TranslationOptions(target_language="xx")
