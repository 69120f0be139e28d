#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
"""PDF再レイアウトのサンプルスクリプト

このスクリプトはpdf-relayoutの基本的な使い方を示します。
抽出したテキストを書き換え、元のレイアウトのままPDFを再生成します。

Usage:
    cd examples
    python relayout_pdf.py
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

# プロジェクトルートをパスに追加（開発時用）
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))


# =============================================================================
# 設定変数 - ここを変更して動作をカスタマイズ
# =============================================================================

# はみ出したテキストの扱い: "wrap" | "scale" | "truncate"
OVERFLOW_STRATEGY = "wrap"

# Noto フォントを Google Fonts CDN から取得する（CJK などの非ラテン文字用）
FETCH_FONTS = False

# 置換: 抽出テキスト中の文字列を置き換えて再生成します
REPLACEMENTS = {
    "Introduction": "Einleitung",
}

# 入出力パス
INPUT_PDF = Path(__file__).parent / "sample.pdf"
OUTPUT_DIR = Path(__file__).parent / "outputs"

# =============================================================================
# メイン処理（通常は変更不要）
# =============================================================================


def substitute(text: str) -> str:
    """REPLACEMENTS を適用する。"""
    for source, target in REPLACEMENTS.items():
        text = text.replace(source, target)
    return text


async def main() -> None:
    """メイン処理。"""
    from pdf_relayout.core.text_layout import LayoutOptions, OverflowStrategy
    from pdf_relayout.pipeline import (
        DocumentExtractor,
        DocumentRegenerator,
        RegenerationConfig,
    )

    # 入力ファイル確認
    if not INPUT_PDF.exists():
        print(f"Error: Input PDF not found: {INPUT_PDF}")
        sys.exit(1)

    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    layout_json = OUTPUT_DIR / f"{INPUT_PDF.stem}.json"
    output_pdf = OUTPUT_DIR / f"{INPUT_PDF.stem}_{OVERFLOW_STRATEGY}.pdf"

    print("=" * 60)
    print("PDF Relayout Example")
    print("=" * 60)
    print(f"Input:       {INPUT_PDF}")
    print(f"Output:      {output_pdf}")
    print(f"Strategy:    {OVERFLOW_STRATEGY}")
    print(f"Fetch fonts: {FETCH_FONTS}")
    print("=" * 60)

    # 抽出
    print("\nExtracting...")
    document = await DocumentExtractor().extract_async(INPUT_PDF)
    layout_json.write_text(document.to_json(), encoding="utf-8")
    print(f"Pages: {document.page_count}, text items: {len(document.text_items)}")
    print(f"Layout JSON: {layout_json}")

    config = RegenerationConfig(
        layout_options=LayoutOptions(overflow_strategy=OverflowStrategy(OVERFLOW_STRATEGY)),
        use_unicode_fonts=FETCH_FONTS,
    )
    text = substitute(document.full_text)

    # 再生成
    print("\nRegenerating PDF...")
    if FETCH_FONTS:
        from pdf_relayout.fonts import get_noto_loader

        NotoFontLoader = get_noto_loader()
        async with NotoFontLoader() as loader:
            result = await DocumentRegenerator(config, font_source=loader).regenerate(
                document, text, output_pdf
            )
    else:
        result = await DocumentRegenerator(config).regenerate(document, text, output_pdf)

    print("\n" + "=" * 60)
    print("Relayout Complete!")
    print("=" * 60)
    if result.stats:
        print(f"Rendered items:  {result.stats['rendered_items']}")
        print(f"Reflowed items:  {result.stats['overflowed_items']}")
    print(f"Output file:     {output_pdf}")
    print(f"File size:       {output_pdf.stat().st_size / 1024:.1f} KB")
    print("\nDone!")


if __name__ == "__main__":
    asyncio.run(main())
