# どこで: `src/vjgrid/__main__.py`。
# 何を: `python -m vjgrid` / `vjgrid` コマンドのエントリポイント。
# なぜ: 設定パスや MIDI ポートをコマンドラインから上書きして起動できるようにするため。

from __future__ import annotations

import argparse
import logging

from vjgrid.api.runner import run


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="vjgrid")
    p.add_argument("--config", default=None, help="config.yaml のパス（探索より優先）")
    p.add_argument("--grid-port", default=None, help="グリッドコントローラの入力ポート名（auto で先頭ポート）")
    p.add_argument("--control-port", default=None, help="control surface の入力ポート名")
    p.add_argument("--fps", type=float, default=None, help="tick レート")
    p.add_argument(
        "--list-ports",
        action="store_true",
        help="MIDI 入力ポート名を表示して終了する",
    )
    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="ログレベル",
    )
    return p.parse_args(argv)


def _list_ports() -> int:
    import mido  # type: ignore

    names = mido.get_input_names()  # type: ignore
    if not names:
        print("(no MIDI input ports)")
    for name in names:
        print(name)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level)),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list_ports:
        return _list_ports()

    run(
        config_path=args.config,
        grid_port=args.grid_port,
        control_port=args.control_port,
        fps=args.fps,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
