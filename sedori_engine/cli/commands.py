"""
CLI 명령어 처리 모듈

서브커맨드:
- profit: 원가/판매가 → 이익, 마진, ROI (+ 목표 마진 판매가)
- validate: JSON 레코드 폼 검증
- trend: JSON 가격 시계열 추세 분석
- rank: JSON 후보 목록 검색 랭킹

AppError 는 사용자 메시지(ja/en)로 출력하고 종료 코드 1.
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .. import __version__
from ..analyzers.price_trend import PriceTrendAnalyzer
from ..analyzers.product_ranker import ProductRanker
from ..core.config import Settings
from ..core.error_handler import ErrorHandler, error_boundary
from ..core.exceptions import AppError
from ..core.logging import setup_logger
from ..domain.forms import FormKind, FormValidator
from ..domain.logic import ProfitCalculator
from ..domain.models import SearchOptions
from ..utils.helpers import format_currency, format_percent, truncate_text

logger = logging.getLogger(__name__)


@dataclass
class CLIConfig:
    """CLI 설정"""
    verbose: bool = False
    lang: str = "ja"
    as_json: bool = False


class CLI:
    """Sedori Engine CLI"""

    def __init__(self, config: CLIConfig = None):
        self.config = config or CLIConfig()
        self.console = Console(highlight=False)
        self.err_console = Console(stderr=True, highlight=False)

    def print_header(self, title: str):
        """섹션 헤더 출력"""
        self.console.rule(f"[bold cyan]{escape(title)}")

    def print_result(self, key: str, value: Any, indent: int = 2):
        """결과 출력"""
        spaces = " " * indent
        self.console.print(f"{spaces}{escape(key)}: [bold]{escape(str(value))}[/bold]")

    def print_success(self, message: str):
        self.console.print(f"[green]✅ {escape(message)}[/green]")

    def print_warning(self, message: str):
        self.console.print(f"[yellow]⚠️ {escape(message)}[/yellow]")

    def print_error(self, message: str):
        self.err_console.print(f"[red]❌ {escape(message)}[/red]")

    def print_app_error(self, error: AppError):
        """AppError 를 사용자 메시지로 출력"""
        self.print_error(f"[{error.code}] {error.display_message(self.config.lang)}")
        if self.config.verbose:
            self.err_console.print(escape(error.message), style="dim")

    def emit_json(self, data: Any):
        """기계 판독용 JSON 출력 (rich 줄바꿈 없이)"""
        print(json.dumps(data, ensure_ascii=False, indent=2, default=str))


def create_parser() -> argparse.ArgumentParser:
    """CLI 파서 생성"""
    parser = argparse.ArgumentParser(
        prog="sedori-engine",
        description="せどり 판매 의사결정 계산 엔진",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
예시:
  # 이익 계산
  %(prog)s profit --cost 1000 --price 1500 --target-margin 30

  # 상품 폼 검증
  %(prog)s validate --form product --input product.json

  # 가격 추세 분석
  %(prog)s trend --input prices.json

  # 검색 랭킹
  %(prog)s rank --input candidates.json --query "人気 イヤホン" --max-risk medium
"""
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="상세 출력 모드 (DEBUG 로그)")
    parser.add_argument("--lang", choices=["ja", "en"], default="ja", help="에러 메시지 언어 (기본: ja)")
    parser.add_argument("--json", dest="as_json", action="store_true", help="JSON 으로 출력")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="사용 가능한 명령어")

    # profit
    profit_parser = subparsers.add_parser("profit", help="이익 / 마진 / ROI 계산")
    profit_parser.add_argument("--cost", required=True, help="원가")
    profit_parser.add_argument("--price", required=True, help="판매가")
    profit_parser.add_argument("--target-margin", help="목표 마진율 (%%) → 필요 판매가")

    # validate
    validate_parser = subparsers.add_parser("validate", help="폼 검증")
    validate_parser.add_argument(
        "--form", required=True, choices=[k.value for k in FormKind], help="폼 종류"
    )
    validate_parser.add_argument("--input", required=True, help="레코드 JSON 파일 (객체 또는 배열)")
    validate_parser.add_argument("--partial", action="store_true", help="없는 필드는 건너뜀")

    # trend
    trend_parser = subparsers.add_parser("trend", help="가격 추세 분석")
    trend_parser.add_argument("--input", required=True, help="가격 시계열 JSON 파일")

    # rank
    rank_parser = subparsers.add_parser("rank", help="후보 상품 랭킹")
    rank_parser.add_argument("--input", required=True, help="후보 목록 JSON 파일")
    rank_parser.add_argument("--query", default="", help="검색어")
    rank_parser.add_argument("--options", help="검색 옵션 JSON 파일")
    rank_parser.add_argument("--limit", type=int, help="최대 결과 수")
    rank_parser.add_argument("--max-risk", choices=["low", "medium", "high"], help="최대 리스크 레벨")
    rank_parser.add_argument("--min-profitability", type=float, help="최소 수익성 점수")
    rank_parser.add_argument("--category", help="카테고리")

    return parser


@error_boundary()
def load_json(path: str) -> Any:
    """JSON 파일 로드 (실패 시 AppError)"""
    with open(Path(path), encoding="utf-8") as f:
        return json.load(f)


def cmd_profit(args, cli: CLI, settings: Settings) -> int:
    """이익 계산 명령어 실행"""
    calc = ProfitCalculator(settings.engine_config())
    report = calc.compute(args.cost, args.price)
    gate_error = calc.check_profitable(args.cost, args.price)
    target_price = (
        calc.price_for_margin(args.cost, args.target_margin)
        if args.target_margin is not None else None
    )

    if cli.config.as_json:
        data = report.to_dict()
        if target_price is not None:
            data["target_price"] = float(target_price.amount)
        if gate_error is not None:
            data["error"] = gate_error.to_dict()
        cli.emit_json(data)
        return 0 if gate_error is None else 1

    formatted = report.format()
    cli.print_header("💰 이익 계산")
    cli.print_result("원가", format_currency(report.cost, report.currency))
    cli.print_result("판매가", format_currency(report.price, report.currency))
    cli.print_result("이익", formatted["profit"])
    cli.print_result("마진율", formatted["margin_pct"])
    cli.print_result("ROI", formatted["roi_pct"])
    if target_price is not None:
        cli.print_result(
            f"목표 마진 {args.target_margin}% 판매가",
            format_currency(target_price.amount, target_price.currency),
        )

    if gate_error is not None:
        cli.print_app_error(gate_error)
        return 1
    cli.print_success("수익성 확인")
    return 0


def cmd_validate(args, cli: CLI, settings: Settings) -> int:
    """폼 검증 명령어 실행"""
    data = load_json(args.input)
    records: List[Dict[str, Any]] = data if isinstance(data, list) else [data]

    validator = FormValidator(settings.engine_config())
    outcomes = [validator.validate(r, args.form, partial=args.partial) for r in records]

    if cli.config.as_json:
        cli.emit_json([o.to_dict() for o in outcomes])
        return 0 if all(o.is_valid for o in outcomes) else 1

    cli.print_header(f"📝 {args.form} 폼 검증")
    for index, outcome in enumerate(outcomes):
        label = f"#{index + 1}"
        if outcome.is_valid:
            cli.print_success(f"{label} 유효")
        else:
            for error in outcome.errors:
                cli.print_error(f"{label} {error.field}: {error.display_message(cli.config.lang)}")
        for warning in outcome.warnings:
            cli.print_warning(f"{label} {warning}")
        if outcome.profit_report is not None:
            formatted = outcome.profit_report.format()
            cli.print_result("마진율", formatted["margin_pct"], 4)
            cli.print_result("ROI", formatted["roi_pct"], 4)

    return 0 if all(o.is_valid for o in outcomes) else 1


def cmd_trend(args, cli: CLI, settings: Settings) -> int:
    """가격 추세 분석 명령어 실행"""
    data = load_json(args.input)
    series = data.get("prices", []) if isinstance(data, dict) else data

    analysis = PriceTrendAnalyzer(settings.engine_config()).analyze(series)

    if cli.config.as_json:
        cli.emit_json(analysis.to_dict())
        return 0

    currency = settings.engine_config().default_currency
    primary = analysis.primary_recommendation
    prediction = analysis.predictions[0]

    cli.print_header("📈 가격 추세 분석")
    cli.print_result("데이터 포인트", analysis.data_points)
    cli.print_result("추세", f"{analysis.trend.value} (강도 {analysis.trend_strength:.2f})")
    cli.print_result("변동성", format_percent(analysis.volatility_pct))
    cli.print_result("평균가", format_currency(analysis.mean_price, currency))
    cli.print_result("현재가", format_currency(analysis.current_price, currency))
    cli.print_result(
        "30일 후 예측",
        f"{format_currency(prediction.predicted_price.amount, currency)} "
        f"({format_currency(prediction.lower.amount, currency)} ~ "
        f"{format_currency(prediction.upper.amount, currency)})",
    )
    cli.print_result("추천", f"{primary.action.value.upper()} - {primary.reason}")
    for insight in analysis.insights:
        cli.console.print(f"    • {escape(insight)}")
    return 0


def cmd_rank(args, cli: CLI, settings: Settings) -> int:
    """검색 랭킹 명령어 실행"""
    data = load_json(args.input)
    candidates = data.get("products", []) if isinstance(data, dict) else data

    raw_options: Any = load_json(args.options) if args.options else {}
    overrides = {
        "limit": args.limit,
        "max_risk_level": args.max_risk,
        "min_profitability_score": args.min_profitability,
        "category": args.category,
    }
    if isinstance(raw_options, dict):
        raw_options = {**raw_options, **{k: v for k, v in overrides.items() if v is not None}}
    options = SearchOptions.from_dict(raw_options)

    ranked = ProductRanker(settings.engine_config()).rank(candidates, args.query, options)

    if cli.config.as_json:
        cli.emit_json([r.to_dict() for r in ranked])
        return 0

    table = Table(title=f"🔍 {escape(args.query) or '(검색어 없음)'}")
    table.add_column("#", justify="right")
    table.add_column("상품")
    table.add_column("점수", justify="right")
    table.add_column("가격", justify="right")
    table.add_column("이유")
    for position, item in enumerate(ranked, start=1):
        table.add_row(
            str(position),
            escape(truncate_text(item.candidate.title, 40)),
            str(item.final_score),
            format_currency(item.candidate.current_price, settings.currency),
            escape(", ".join(item.reasons)),
        )
    cli.console.print(table)
    return 0


COMMANDS = {
    "profit": cmd_profit,
    "validate": cmd_validate,
    "trend": cmd_trend,
    "rank": cmd_rank,
}


def run_cli(argv: Optional[List[str]] = None) -> int:
    """CLI 실행 (종료 코드 반환)"""
    parser = create_parser()
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    setup_logger(
        level="DEBUG" if args.verbose else settings.log_level,
        json_format=settings.log_json,
    )

    cli = CLI(CLIConfig(verbose=args.verbose, lang=args.lang, as_json=args.as_json))

    command = COMMANDS.get(args.command)
    if command is None:
        # 명령어 없으면 도움말
        parser.print_help()
        return 0

    try:
        return command(args, cli, settings)
    except AppError as e:
        cli.print_app_error(e)
        return 1
    except Exception as e:
        # 예상 못한 오류도 AppError 로 정규화해서 출력
        cli.print_app_error(ErrorHandler(logger).handle(e, {"command": args.command}))
        return 1


def main():
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
