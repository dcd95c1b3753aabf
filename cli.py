"""
MangaTranslator Core - CLI (Command Line Interface)

Interface de linha de comando para fatiar tiras longas e rodar o pipeline
de tradução sem GUI.
"""

import asyncio
import sys
import argparse
from pathlib import Path
import time

# Adiciona raiz do projeto
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from core.logging.setup import set_verbosity, setup_logging
# Configura logging antes de importar outros módulos que podem usar loggers
setup_logging()

from config.settings import (
    CONCURRENCY_LIMIT, RPM_LIMIT, TARGET_CHUNK_HEIGHT, MIN_CHUNK_HEIGHT,
    SUPPORTED_LANGUAGES, DEFAULT_TARGET_LANGUAGE,
)
from core.constants import ReadingMode, SortOrder
from core.exceptions import SlicingError
from core.pipeline import PageSource, TranslationOptions, TranslationPipeline
from core.scheduling.scheduler import SchedulerOptions
from core.slicing.hybrid_slicer import HybridSlicer, SlicingOptions
from core.slicing.interfaces import JsonFileZoneSuggester
from core.translation.echo_worker import EchoWorker
from core.utils.atomic_io import atomic_save_raster, atomic_write_json
from core.utils.image_ops import load_raster, mime_for_path


def print_progress(completed: int, total: int):
    """Callback de progresso para CLI."""
    bar_length = 30
    progress = (completed / total) * 100 if total else 0.0
    filled = int(bar_length * progress / 100)
    bar = '█' * filled + '░' * (bar_length - filled)
    print(f"\r  [{bar}] {completed}/{total} ({progress:.1f}%)", end='', flush=True)
    if total and completed >= total:
        print()


def split_command(args):
    """Comando: split (fatiamento híbrido de uma tira)"""
    image_path = Path(args.image)
    output_dir = Path(args.output)

    options = SlicingOptions(
        target_chunk_height=args.target,
        min_chunk_height=args.min_height,
    )
    suggester = JsonFileZoneSuggester(args.zones) if args.zones else None
    slicer = HybridSlicer(suggester=suggester, options=options)

    try:
        raster = load_raster(image_path)
    except (OSError, SlicingError) as e:
        print(f"[ERRO] Não foi possível abrir {image_path}: {e}")
        return 1

    print(f"[FATIAMENTO] {image_path.name} ({raster.width}x{raster.height}), alvo {args.target}px")
    start_time = time.time()
    result = asyncio.run(slicer.slice(raster, mime_for_path(image_path), name=image_path.name))
    elapsed = time.time() - start_time

    manifest = {
        "source": image_path.name,
        "width": raster.width,
        "height": raster.height,
        **result.to_dict(),
        "chunks": [],
    }
    for chunk in result.chunks:
        chunk_name = chunk.name_for(image_path.name)
        atomic_save_raster(output_dir / chunk_name, chunk.image)
        manifest["chunks"].append({
            "name": chunk_name,
            "index": chunk.index,
            "top": chunk.top,
            "bottom": chunk.bottom,
        })
    atomic_write_json(output_dir / "plan.json", manifest)

    print(f"[OK] {len(result.chunks)} pedaço(s) em {elapsed:.2f}s -> {output_dir}")
    print(f"  Cortes: {result.cuts}")
    print(f"  Zonas: {result.hints_received} recebida(s), {result.zone_cuts} usada(s), "
          f"{result.fallback_cuts} fallback")
    return 0


def run_command(args):
    """Comando: run (pipeline completo com worker offline)"""
    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    sources = []
    for raw in args.input:
        try:
            sources.append(PageSource.from_path(raw))
        except OSError as e:
            print(f"[ERRO] Não foi possível ler {raw}: {e}")
            return 1

    mode = ReadingMode(args.mode)
    options = TranslationOptions(
        mode=mode,
        sort_order=SortOrder(args.order) if args.order else None,
        target_language=args.lang,
    )
    pipeline = TranslationPipeline(
        worker=EchoWorker(),
        suggester=JsonFileZoneSuggester(args.zones) if args.zones else None,
        slicing_options=SlicingOptions(target_chunk_height=args.target),
        scheduler_options=SchedulerOptions(concurrency_limit=args.concurrency, rpm_limit=args.rpm),
        use_prefilter=not args.no_prefilter,
    )
    pipeline.set_progress_callback(print_progress)

    print(f"[TRADUÇÃO] {len(sources)} arquivo(s), modo {mode.value}, idioma {args.lang}")
    print(f"  Concorrência: {args.concurrency} | RPM: {args.rpm}")

    start_time = time.time()
    stats = asyncio.run(pipeline.run(sources, options))
    elapsed = time.time() - start_time

    for position, item in enumerate(pipeline.items, start=1):
        if item.result is None:
            print(f"  [FALHA] {item.name}: {item.error}")
            continue
        atomic_save_raster(output_dir / f"{position:04d}_{item.name}", item.result)

    print(f"\n[OK] {stats.completed}/{stats.total} concluído(s) em {elapsed:.1f}s "
          f"({stats.error} com erro)")
    return 0 if stats.error == 0 else 2


def info_command(args):
    """Comando: info (configuração ativa)"""
    print("Configurações")
    print("=" * 40)
    print(f"  Altura alvo: {TARGET_CHUNK_HEIGHT}px")
    print(f"  Altura mínima: {MIN_CHUNK_HEIGHT}px")
    print(f"  Concorrência: {CONCURRENCY_LIMIT}")
    print(f"  RPM: {RPM_LIMIT}")
    print(f"  Idiomas: {', '.join(SUPPORTED_LANGUAGES)}")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="manga-translator",
        description="MangaTranslator Core - CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exemplos:
  # Fatiar uma tira longa em pedaços de ~2500px
  python cli.py split chapter_01.png --output ./chunks

  # Fatiar usando zonas seguras pré-calculadas
  python cli.py split chapter_01.png --zones zones.json --output ./chunks

  # Pipeline completo (worker offline)
  python cli.py run ch_*.png --mode manhwa --lang en --output ./output
        """
    )

    parser.add_argument("--verbose", "-v", action="store_true", help="Logs em nível DEBUG")

    subparsers = parser.add_subparsers(dest="command", help="Comandos disponíveis")

    # Comando: split
    split_parser = subparsers.add_parser("split", help="Fatia uma imagem longa")
    split_parser.add_argument("image", help="Imagem da tira vertical")
    split_parser.add_argument("--output", "-o", default="./chunks", help="Diretório de saída")
    split_parser.add_argument("--target", type=int, default=TARGET_CHUNK_HEIGHT, help="Altura alvo dos pedaços")
    split_parser.add_argument("--min-height", type=int, default=MIN_CHUNK_HEIGHT, help="Altura mínima de um pedaço")
    split_parser.add_argument("--zones", help="JSON com zonas seguras (start_percent, end_percent, type)")
    split_parser.set_defaults(func=split_command)

    # Comando: run
    run_parser = subparsers.add_parser("run", help="Prepara e processa um lote de páginas")
    run_parser.add_argument("input", nargs="+", help="Arquivos de imagem das páginas")
    run_parser.add_argument("--output", "-o", default="./output", help="Diretório de saída")
    run_parser.add_argument("--mode", choices=[m.value for m in ReadingMode], default=ReadingMode.MANGA.value)
    run_parser.add_argument("--order", choices=[o.value for o in SortOrder], help="Ordem (padrão depende do modo)")
    run_parser.add_argument("--lang", choices=list(SUPPORTED_LANGUAGES), default=DEFAULT_TARGET_LANGUAGE)
    run_parser.add_argument("--target", type=int, default=TARGET_CHUNK_HEIGHT, help="Altura alvo dos pedaços")
    run_parser.add_argument("--zones", help="JSON com zonas seguras")
    run_parser.add_argument("--concurrency", type=int, default=CONCURRENCY_LIMIT)
    run_parser.add_argument("--rpm", type=int, default=RPM_LIMIT)
    run_parser.add_argument("--no-prefilter", action="store_true", help="Não pular pedaços de baixa variância")
    run_parser.set_defaults(func=run_command)

    # Comando: info
    info_parser = subparsers.add_parser("info", help="Configuração ativa")
    info_parser.set_defaults(func=info_command)

    args = parser.parse_args(argv)
    if args.verbose:
        set_verbosity(True)

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
