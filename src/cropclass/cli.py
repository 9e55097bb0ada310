# src/cropclass/cli.py
from __future__ import annotations

"""
CLI del pipeline de clasificación de cultivos (contracts-first, minimal).

Comandos principales:
  - upload: valida y guarda una imagen en el almacén de uploads.
  - classify: clasifica una imagen subida y agrega el resultado a la sesión.
  - export: genera CSV / GeoJSON / reporte HTML ("pdf") desde la sesión.
  - tiers: muestra la tabla de niveles de confianza.
  - session clear: vacía el log de sesión.

Ejemplos rápidos:
  python -m cropclass.cli upload ./tile.tif
  python -m cropclass.cli classify 3f2a...c1.tif --lat 5.35 --lng -4.02
  python -m cropclass.cli export --format geojson --out ./exports
"""

import argparse
import json
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Optional

from .composition.di import Pipeline, build_pipeline, build_settings
from .contracts.core import Coordinates
from .contracts.errors import CropClassError, InvalidRequestError

logger = logging.getLogger("cropclass.cli")

# MIME que mimetypes no conoce
_EXTRA_MIME = {".tif": "image/tiff", ".tiff": "image/tiff"}


# ----------------------
# Utilidades locales
# ----------------------

def _pipeline(args: argparse.Namespace) -> Pipeline:
    root = Path(args.root) if args.root else Path.cwd()
    cfg = Path(args.config) if args.config else None
    return build_pipeline(build_settings(root, cfg))


def _guess_mimetype(path: Path) -> Optional[str]:
    mt, _ = mimetypes.guess_type(path.name)
    return mt or _EXTRA_MIME.get(path.suffix.lower())


def _coordinates(args: argparse.Namespace) -> Optional[Coordinates]:
    if args.lat is None and args.lng is None:
        return None
    if args.lat is None or args.lng is None:
        raise InvalidRequestError(["--lat y --lng van juntos"])
    try:
        return Coordinates(lat=args.lat, lng=args.lng)
    except ValueError as e:
        raise InvalidRequestError([str(e)], "coordenadas inválidas") from None


# ----------------------
# Comandos
# ----------------------

def cmd_upload(args: argparse.Namespace) -> int:
    p = _pipeline(args)
    src = Path(args.file)
    if not src.is_file():
        raise InvalidRequestError([f"no existe el archivo {src}"])
    stored = p.uploads.ingest(src.name, src.read_bytes(), args.mimetype or _guess_mimetype(src))
    print(stored.image_ref)
    return 0


def cmd_classify(args: argparse.Namespace) -> int:
    p = _pipeline(args)
    result = p.classification.classify(args.image_ref, _coordinates(args))
    log = p.session_log(Path(args.session) if args.session else None)
    log.append(result)
    logger.info("resultado agregado a %s", log.path)
    print(result.model_dump_json(indent=2))
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    p = _pipeline(args)
    log = p.session_log(Path(args.session) if args.session else None)
    artifact = p.exports.export(args.format, log.load())
    out_dir = Path(args.out) if args.out else p.settings.export_dir
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / artifact.filename
    out_path.write_bytes(artifact.content)
    logger.info("exportado %s (%s, %d bytes)", out_path, artifact.content_type, artifact.size_bytes)
    print(str(out_path))
    return 0


def cmd_tiers(args: argparse.Namespace) -> int:
    p = _pipeline(args)
    rows = [t.model_dump() for t in p.settings.confidence_tiers]
    print(json.dumps(rows, indent=2, ensure_ascii=False))
    return 0


def cmd_session_clear(args: argparse.Namespace) -> int:
    p = _pipeline(args)
    log = p.session_log(Path(args.session) if args.session else None)
    log.clear()
    print(str(log.path))
    return 0


# ----------------------
# Parser
# ----------------------

def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="cropclass", description="Clasificación de cultivos por imagen (contracts-first)")
    p.add_argument("--root", help="project_root (por defecto, directorio actual)")
    p.add_argument("--config", help="settings YAML (por defecto <root>/config/settings.yaml)")
    p.add_argument("--log-level", default="WARNING", help="nivel de logging (DEBUG, INFO, WARNING...)")
    sub = p.add_subparsers(dest="cmd", required=True)

    # upload
    pu = sub.add_parser("upload", help="valida y guarda una imagen")
    pu.add_argument("file", help="imagen JPEG/PNG/TIFF")
    pu.add_argument("--mimetype", help="MIME explícito (si no, se infiere de la extensión)")
    pu.set_defaults(func=cmd_upload)

    # classify
    pc = sub.add_parser("classify", help="clasifica una imagen subida")
    pc.add_argument("image_ref", help="referencia devuelta por `upload`")
    pc.add_argument("--lat", type=float, help="latitud (-90..90)")
    pc.add_argument("--lng", type=float, help="longitud (-180..180)")
    pc.add_argument("--session", help="log de sesión JSONL (por defecto Settings.session_file)")
    pc.set_defaults(func=cmd_classify)

    # export
    pe = sub.add_parser("export", help="exporta los resultados de la sesión")
    pe.add_argument("--format", required=True, help="csv | geojson | pdf")
    pe.add_argument("--session", help="log de sesión JSONL (por defecto Settings.session_file)")
    pe.add_argument("--out", help="carpeta de salida (por defecto Settings.export_dir)")
    pe.set_defaults(func=cmd_export)

    # tiers
    pt = sub.add_parser("tiers", help="muestra la tabla de niveles de confianza")
    pt.set_defaults(func=cmd_tiers)

    # session clear
    ps = sub.add_parser("session", help="operaciones sobre el log de sesión")
    ssub = ps.add_subparsers(dest="session_cmd", required=True)
    psc = ssub.add_parser("clear", help="vacía el log de sesión")
    psc.add_argument("--session", help="log de sesión JSONL (por defecto Settings.session_file)")
    psc.set_defaults(func=cmd_session_clear)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return int(args.func(args))
    except KeyboardInterrupt:
        return 130
    except CropClassError as ex:
        print(f"[ERROR] {ex.code}: {ex.message}", file=sys.stderr)
        return 1
    except Exception as ex:
        logger.exception("error inesperado")
        print(f"[ERROR] {ex}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
