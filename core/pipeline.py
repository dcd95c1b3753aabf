"""
MangaTranslator Core - Pipeline Principal
Orquestra preparação das páginas (ordenação + fatiamento) e o agendador de tradução.
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from config.settings import DEFAULT_CHUNK_MIME, DEFAULT_TARGET_LANGUAGE, SUPPORTED_LANGUAGES
from core.analysis.complexity import is_worth_processing
from core.constants import ReadingMode, SortOrder
from core.domain.page_ordering import extract_page_number, resolve_order, sort_page_files
from core.domain.session_context import SessionContext
from core.exceptions import SlicingError, TranslationError
from core.logging.setup import get_logger
from core.scheduling.scheduler import ProcessingStats, Scheduler, SchedulerOptions
from core.scheduling.work_item import WorkItem
from core.slicing.hybrid_slicer import HybridSlicer, SlicingOptions
from core.slicing.interfaces import ZoneSuggester
from core.translation.interfaces import TranslationWorker
from core.utils.image_ops import decode_image, encode_image, mime_for_path

logger = get_logger("Pipeline")


@dataclass
class PageSource:
    """Arquivo de entrada já lido em memória."""
    name: str
    data: bytes
    mime_type: str = DEFAULT_CHUNK_MIME

    @classmethod
    def from_path(cls, path) -> "PageSource":
        path = Path(path)
        return cls(name=path.name, data=path.read_bytes(), mime_type=mime_for_path(path))


@dataclass
class TranslationOptions:
    """Opções de um lote de tradução"""
    mode: ReadingMode = ReadingMode.MANGA
    sort_order: Optional[SortOrder] = None
    target_language: str = DEFAULT_TARGET_LANGUAGE

    def __post_init__(self):
        if self.target_language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Idioma não suportado: {self.target_language}")


class TranslationPipeline:
    """
    Pipeline de tradução de capítulos.

    prepare_pages() -> WorkItems PENDING (um por página, ou um por pedaço no
    modo manhwa); translate_all() roda o agendador até esvaziar a fila.
    """

    def __init__(
        self,
        worker: TranslationWorker,
        suggester: Optional[ZoneSuggester] = None,
        slicing_options: Optional[SlicingOptions] = None,
        scheduler_options: Optional[SchedulerOptions] = None,
        use_prefilter: bool = True,
        context: Optional[SessionContext] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.worker = worker
        self.slicer = HybridSlicer(suggester, slicing_options)
        self.context = context or SessionContext()
        self.options = TranslationOptions()

        self.scheduler = Scheduler(
            self._dispatch,
            options=scheduler_options,
            prefilter=is_worth_processing if use_prefilter else None,
            clock=clock,
            on_change=self._on_item_change,
        )

        self._progress_callback: Optional[Callable[[int, int], None]] = None

    def set_progress_callback(self, callback: Callable[[int, int], None]):
        """
        Define callback de progresso.

        Args:
            callback: Função(completed, total)
        """
        self._progress_callback = callback

    def _on_item_change(self, item: WorkItem):
        if self._progress_callback:
            stats = self.scheduler.stats()
            self._progress_callback(stats.completed, stats.total)

    async def prepare_pages(
        self,
        sources: Sequence[PageSource],
        options: Optional[TranslationOptions] = None,
    ) -> List[WorkItem]:
        """
        Ordena os arquivos, fatia (modo manhwa) e enfileira os itens.

        Um novo lote reinicia a memória da sessão. Se um lote anterior ainda
        está em andamento, ele fica com a memória dele e o novo lote recebe
        outra. Cada item guarda o idioma e a memória do seu lote.
        Arquivo que não decodifica é ignorado com log de erro; falha no
        fatiamento enfileira a página inteira.
        """
        options = options or TranslationOptions()
        self.options = options
        if self.scheduler.stats().is_idle:
            self.context.reset()
        else:
            logger.info("Lote anterior ainda em andamento, novo lote com memória própria")
            self.context = SessionContext()
        context = self.context

        order = resolve_order(options.mode, options.sort_order)
        ordered = sort_page_files(sources, order, key_name=lambda s: s.name)

        items: List[WorkItem] = []
        for source in ordered:
            page_number = extract_page_number(source.name)
            try:
                raster = decode_image(source.data, source.name)
            except SlicingError as e:
                logger.error(f"Arquivo ignorado: {e}")
                continue

            if options.mode is ReadingMode.MANHWA:
                try:
                    chunks = await self.slicer.split(
                        raster, source.mime_type, image_bytes=source.data, name=source.name
                    )
                    items.extend(
                        WorkItem(
                            source_image=chunk.image,
                            name=chunk.name_for(source.name) if len(chunks) > 1 else source.name,
                            page_number=page_number,
                            mime_type=source.mime_type,
                            target_language=options.target_language,
                            context=context,
                        )
                        for chunk in chunks
                    )
                    continue
                except Exception as e:
                    logger.error(f"Erro ao preparar {source.name}, enfileirando inteiro: {e}")

            items.append(WorkItem(
                source_image=raster,
                name=source.name,
                page_number=page_number,
                mime_type=source.mime_type,
                target_language=options.target_language,
                context=context,
            ))

        self.scheduler.submit(items)
        logger.info(f"{len(items)} item(ns) na fila ({len(ordered)} arquivo(s), modo {options.mode.value})")
        return items

    async def _dispatch(self, item: WorkItem):
        image_bytes = encode_image(item.source_image, item.mime_type)
        language = item.target_language or self.options.target_language
        context = item.context if item.context is not None else self.context
        translated = await self.worker.translate(image_bytes, item.mime_type, language, context)
        try:
            return decode_image(translated, item.name)
        except SlicingError as e:
            raise TranslationError(f"Worker devolveu imagem inválida: {e}", item_id=item.id) from e

    async def translate_all(self) -> ProcessingStats:
        start_time = time.time()
        stats = await self.scheduler.run_until_idle()
        logger.info(
            f"Lote concluído em {time.time() - start_time:.1f}s: "
            f"{stats.completed}/{stats.total} ok, {stats.error} com erro"
        )
        return stats

    async def run(
        self,
        sources: Sequence[PageSource],
        options: Optional[TranslationOptions] = None,
    ) -> ProcessingStats:
        await self.prepare_pages(sources, options)
        return await self.translate_all()

    def regenerate(self, item_id: str) -> WorkItem:
        """Devolve um item à fila; chame translate_all() de novo para processá-lo."""
        return self.scheduler.regenerate(item_id)

    @property
    def items(self) -> List[WorkItem]:
        return self.scheduler.items

    def stats(self) -> ProcessingStats:
        return self.scheduler.stats()
