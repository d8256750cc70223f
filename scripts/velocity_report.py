#!/usr/bin/env python3
"""
Velocity Report Script
티커 또는 포스트 파일의 시간대별 베이스라인/속도 리포트
"""

import asyncio
import typer
from pathlib import Path
from rich.console import Console
from rich.table import Table
from typing import Optional

from pulse.data_pipeline.sources import (
    FilePostSource,
    PostSourceError,
    SyntheticPostSource,
    get_post_source,
)
from pulse.services.analysis.velocity import describe_velocity, get_velocity_engine

app = typer.Typer()
console = Console()

SIGNAL_COLORS = {
    "VERY_HIGH": "bold red",
    "HIGH_ACTIVITY": "red",
    "ELEVATED": "yellow",
    "NORMAL": "green",
    "LOW": "blue",
}


@app.command()
def report(
    ticker: str = typer.Argument("TSLA", help="티커 심볼"),
    posts_file: Optional[Path] = typer.Option(None, "--file", "-f", help="포스트 파일 (.json/.csv)"),
    synthetic: bool = typer.Option(False, "--synthetic", help="합성 데이터 사용"),
    hour: Optional[int] = typer.Option(None, "--hour", min=0, max=23, help="기준 시간대 (UTC)"),
):
    """
    시간대별 베이스라인 리포트

    Args:
        ticker: 티커 심볼
        posts_file: 포스트 파일 (지정 시 해당 파일 사용)
        synthetic: 합성 데이터 강제 사용
        hour: 기준 시간대 (기본값: 현재 UTC 시)
    """
    console.print("\n📈 [bold cyan]Pulse - Velocity Report[/bold cyan]\n")

    try:
        if posts_file:
            # 지정한 파일을 그대로 읽음 (티커 파일명 규칙 무시)
            ticker = posts_file.stem
            posts = FilePostSource(str(posts_file.parent)).read_file(posts_file)
        else:
            source = SyntheticPostSource() if synthetic else get_post_source()
            posts = asyncio.run(source.run(ticker.upper()))
    except PostSourceError as e:
        console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(code=1)

    if not posts:
        console.print(f"[yellow]⚠️ {ticker.upper()}: 포스트가 없습니다. 폴백 베이스라인만 표시합니다.[/yellow]")

    engine = get_velocity_engine()
    baselines = engine.compute_hourly_baselines(posts, len(posts))
    result = engine.velocity_at_hour(baselines, hour)

    _print_table(ticker.upper(), engine.hourly_series(baselines, 23), result.hour)

    color = SIGNAL_COLORS.get(result.signal.value, "white")
    console.print(
        f"\n[bold]{ticker.upper()}[/bold] @ {result.hour:02d}:00 UTC | "
        f"actual={result.actual} baseline={result.baseline} | "
        f"velocity=[bold]{result.velocity:.2f}[/bold] ({describe_velocity(result.velocity)}) | "
        f"signal=[{color}]{result.signal.value}[/{color}] | trend={result.trend.value}"
    )
    console.print(
        f"[dim]posts={baselines.total_count} dropped={baselines.dropped_count} "
        f"weekdays_observed={baselines.weekdays_observed}[/dim]\n"
    )


def _print_table(ticker: str, series, current_hour: int):
    """시간대별 테이블 출력"""
    table = Table(title=f"{ticker} Hourly Baselines (UTC)")
    table.add_column("Hour", style="cyan")
    table.add_column("Today", justify="right")
    table.add_column("Baseline", justify="right")
    table.add_column("Velocity", justify="right")

    for point in series:
        style = "bold" if point.hour == current_hour else None
        table.add_row(
            point.time,
            str(point.actual),
            str(point.baseline),
            f"{point.velocity:.2f}",
            style=style,
        )

    console.print(table)


if __name__ == "__main__":
    app()
