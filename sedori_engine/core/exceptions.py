"""
에러 분류 체계

Sedori 계산 엔진에서 발생하는 모든 실패를 단일 AppError 타입으로 표현.
- ErrorKind: 닫힌 실패 원인 집합 (카테고리, 코드, 기본 HTTP 상태)
- ERROR_MESSAGES: ErrorKind → 사용자 메시지(en/ja) 불변 테이블
- parse_external_failure: 외부 실패(네트워크 예외, HTTP 상태, 타임아웃) 정규화
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Union

ContextValue = Union[str, int, float, bool]

MAX_CONTEXT_VALUE_LENGTH = 100


class ErrorCategory(Enum):
    """에러 카테고리"""
    VALIDATION = "VALIDATION"
    NETWORK = "NETWORK"
    API = "API"
    AUTH = "AUTH"
    PROFIT_CALCULATION = "PROFIT_CALCULATION"
    CART = "CART"
    UNKNOWN = "UNKNOWN"


class ErrorKind(Enum):
    """실패 원인 (닫힌 집합)

    값: (코드, 카테고리, 기본 HTTP 상태). 네트워크 계열은 HTTP 응답이 없으므로 0.
    """

    # 검증
    INVALID_EMAIL = ("INVALID_EMAIL", ErrorCategory.VALIDATION, 400)
    INVALID_PASSWORD = ("INVALID_PASSWORD", ErrorCategory.VALIDATION, 400)
    REQUIRED_FIELD = ("REQUIRED_FIELD", ErrorCategory.VALIDATION, 400)
    INVALID_NUMBER = ("INVALID_NUMBER", ErrorCategory.VALIDATION, 400)
    NEGATIVE_VALUE = ("NEGATIVE_VALUE", ErrorCategory.VALIDATION, 400)
    INVALID_LENGTH = ("INVALID_LENGTH", ErrorCategory.VALIDATION, 400)
    INVALID_IMAGE_URL = ("INVALID_IMAGE_URL", ErrorCategory.VALIDATION, 400)

    # 네트워크
    NETWORK_TIMEOUT = ("NETWORK_TIMEOUT", ErrorCategory.NETWORK, 0)
    NETWORK_OFFLINE = ("NETWORK_OFFLINE", ErrorCategory.NETWORK, 0)
    CONNECTION_FAILED = ("CONNECTION_FAILED", ErrorCategory.NETWORK, 0)

    # API
    API_UNAVAILABLE = ("API_UNAVAILABLE", ErrorCategory.API, 503)
    RATE_LIMIT_EXCEEDED = ("RATE_LIMIT_EXCEEDED", ErrorCategory.API, 429)
    NOT_FOUND = ("NOT_FOUND", ErrorCategory.API, 404)
    INTERNAL_SERVER_ERROR = ("INTERNAL_SERVER_ERROR", ErrorCategory.API, 500)

    # 인증
    INVALID_CREDENTIALS = ("INVALID_CREDENTIALS", ErrorCategory.AUTH, 401)
    TOKEN_EXPIRED = ("TOKEN_EXPIRED", ErrorCategory.AUTH, 401)
    UNAUTHORIZED = ("UNAUTHORIZED", ErrorCategory.AUTH, 401)
    FORBIDDEN = ("FORBIDDEN", ErrorCategory.AUTH, 403)

    # 비즈니스 규칙 (이익 계산 / 가격 분석)
    COST_GREATER_THAN_PRICE = ("COST_GREATER_THAN_PRICE", ErrorCategory.PROFIT_CALCULATION, 400)
    INVALID_PROFIT_CALCULATION = ("INVALID_PROFIT_CALCULATION", ErrorCategory.PROFIT_CALCULATION, 400)
    INSUFFICIENT_DATA = ("INSUFFICIENT_DATA", ErrorCategory.PROFIT_CALCULATION, 422)
    DEGENERATE_SERIES = ("DEGENERATE_SERIES", ErrorCategory.PROFIT_CALCULATION, 422)

    # 장바구니
    CART_EMPTY = ("CART_EMPTY", ErrorCategory.CART, 400)
    PRODUCT_OUT_OF_STOCK = ("PRODUCT_OUT_OF_STOCK", ErrorCategory.CART, 409)

    # 기타
    UNKNOWN = ("UNKNOWN", ErrorCategory.UNKNOWN, 500)

    def __init__(self, code: str, category: ErrorCategory, default_status: int):
        self.code = code
        self.category = category
        self.default_status = default_status


@dataclass(frozen=True)
class UserMessage:
    """사용자 표시용 메시지 (영어/일본어)"""
    en: str
    ja: str

    def get(self, lang: str = "ja") -> str:
        return self.ja if lang == "ja" else self.en


ERROR_MESSAGES: Mapping[ErrorKind, UserMessage] = MappingProxyType({
    ErrorKind.INVALID_EMAIL: UserMessage(
        "Please enter a valid email address",
        "有効なメールアドレスを入力してください",
    ),
    ErrorKind.INVALID_PASSWORD: UserMessage(
        "Password must be at least 6 characters long",
        "パスワードは6文字以上で入力してください",
    ),
    ErrorKind.REQUIRED_FIELD: UserMessage(
        "This field is required",
        "この項目は必須です",
    ),
    ErrorKind.INVALID_NUMBER: UserMessage(
        "Please enter a valid number",
        "有効な数値を入力してください",
    ),
    ErrorKind.NEGATIVE_VALUE: UserMessage(
        "Value cannot be negative",
        "値は負の数にできません",
    ),
    ErrorKind.INVALID_LENGTH: UserMessage(
        "Please check the length of this field",
        "入力文字数を確認してください",
    ),
    ErrorKind.INVALID_IMAGE_URL: UserMessage(
        "Please provide a valid image URL (jpg, png, gif, webp)",
        "有効な画像URL（jpg、png、gif、webp）を入力してください",
    ),
    ErrorKind.NETWORK_TIMEOUT: UserMessage(
        "Request timed out. Please check your connection and try again",
        "リクエストがタイムアウトしました。接続を確認して再度お試しください",
    ),
    ErrorKind.NETWORK_OFFLINE: UserMessage(
        "You appear to be offline. Please check your connection",
        "オフラインのようです。接続を確認してください",
    ),
    ErrorKind.CONNECTION_FAILED: UserMessage(
        "Failed to connect to server. Please try again",
        "サーバーへの接続に失敗しました。再度お試しください",
    ),
    ErrorKind.API_UNAVAILABLE: UserMessage(
        "Service is temporarily unavailable. Please try again later",
        "サービスが一時的に利用できません。しばらくしてから再度お試しください",
    ),
    ErrorKind.RATE_LIMIT_EXCEEDED: UserMessage(
        "Too many requests. Please wait a moment and try again",
        "リクエストが多すぎます。しばらく待ってから再度お試しください",
    ),
    ErrorKind.NOT_FOUND: UserMessage(
        "The requested resource was not found",
        "要求されたリソースが見つかりません",
    ),
    ErrorKind.INTERNAL_SERVER_ERROR: UserMessage(
        "Internal server error. Please try again later",
        "サーバー内部エラーです。しばらくしてから再度お試しください",
    ),
    ErrorKind.INVALID_CREDENTIALS: UserMessage(
        "Invalid email or password",
        "メールアドレスまたはパスワードが間違っています",
    ),
    ErrorKind.TOKEN_EXPIRED: UserMessage(
        "Your session has expired. Please log in again",
        "セッションが期限切れです。再度ログインしてください",
    ),
    ErrorKind.UNAUTHORIZED: UserMessage(
        "You are not authorized to perform this action",
        "この操作を実行する権限がありません",
    ),
    ErrorKind.FORBIDDEN: UserMessage(
        "Access denied",
        "アクセスが拒否されました",
    ),
    ErrorKind.COST_GREATER_THAN_PRICE: UserMessage(
        "Selling price must be higher than cost price for profit",
        "利益を得るには販売価格は仕入れ価格より高く設定してください",
    ),
    ErrorKind.INVALID_PROFIT_CALCULATION: UserMessage(
        "Invalid values for profit calculation",
        "利益計算の値が無効です",
    ),
    ErrorKind.INSUFFICIENT_DATA: UserMessage(
        "Not enough price data to analyze",
        "価格データが不足しているため分析できません",
    ),
    ErrorKind.DEGENERATE_SERIES: UserMessage(
        "Price data contains zero prices that cannot be analyzed",
        "価格データに分析できない0円の値が含まれています",
    ),
    ErrorKind.CART_EMPTY: UserMessage(
        "Your cart is empty",
        "カートに商品がありません",
    ),
    ErrorKind.PRODUCT_OUT_OF_STOCK: UserMessage(
        "This product is out of stock",
        "この商品は在庫切れです",
    ),
    ErrorKind.UNKNOWN: UserMessage(
        "Internal server error. Please try again later",
        "サーバー内部エラーです。しばらくしてから再度お試しください",
    ),
})


def _coerce_context(context: Optional[Mapping[str, Any]]) -> Mapping[str, ContextValue]:
    """컨텍스트 값을 str | int | float | bool 로 제한"""
    coerced: Dict[str, ContextValue] = {}
    for key, value in (context or {}).items():
        if value is None:
            continue
        if isinstance(value, (bool, int, float)):
            coerced[str(key)] = value
        else:
            coerced[str(key)] = str(value)[:MAX_CONTEXT_VALUE_LENGTH]  # 값 길이 제한
    return MappingProxyType(coerced)


class AppError(Exception):
    """엔진 단일 예외 타입

    생성 후 변경하지 않는다. context 는 읽기 전용 매핑이며
    진단용 필드명/값만 담는다 (비밀번호 등 비밀값 금지).
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str = None,
        http_status: int = None,
        context: Mapping[str, Any] = None,
        user_message: UserMessage = None,
    ):
        self.kind = kind
        self.message = message or f"{kind.category.value.lower()} error: {kind.code}"
        self.http_status = kind.default_status if http_status is None else http_status
        self.context = _coerce_context(context)
        self.user_message = user_message or ERROR_MESSAGES[kind]
        self.occurred_at = datetime.now(timezone.utc)
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return self.kind.code

    @property
    def category(self) -> ErrorCategory:
        return self.kind.category

    @property
    def field(self) -> Optional[str]:
        """오류가 발생한 필드명 (검증 오류용)"""
        value = self.context.get("field")
        return str(value) if value is not None else None

    def display_message(self, lang: str = "ja") -> str:
        """최종 사용자에게 보여줄 메시지"""
        return self.user_message.get(lang)

    def to_dict(self, include_debug: bool = False) -> Dict[str, Any]:
        """딕셔너리로 변환

        include_debug=False 이면 개발자용 message/context 를 제외한다.
        """
        data = {
            "type": self.kind.category.value,
            "code": self.kind.code,
            "user_message": {"en": self.user_message.en, "ja": self.user_message.ja},
            "status_code": self.http_status,
            "timestamp": self.occurred_at.isoformat(),
        }
        if include_debug:
            data["message"] = self.message
            data["context"] = dict(self.context)
        return data

    def __str__(self) -> str:
        return f"[{self.kind.code}] {self.message}"

    def __repr__(self) -> str:
        return f"AppError(kind={self.kind.name}, http_status={self.http_status})"


# ============================================================
# 생성 함수
# ============================================================

def _check_category(kind: ErrorKind, *allowed: ErrorCategory):
    if kind.category not in allowed:
        raise ValueError(
            f"{kind.name} belongs to {kind.category.value}, expected one of "
            f"{[c.value for c in allowed]}"
        )


def make_error(
    kind: ErrorKind,
    context: Mapping[str, Any] = None,
    http_status: int = None,
    message: str = None,
) -> AppError:
    """카테고리 검사 없이 AppError 생성"""
    return AppError(kind, message=message, http_status=http_status, context=context)


def validation_error(kind: ErrorKind, context: Mapping[str, Any] = None) -> AppError:
    """검증 오류 (400)"""
    _check_category(kind, ErrorCategory.VALIDATION)
    return AppError(kind, message=f"Validation error: {kind.code}", context=context)


def network_error(kind: ErrorKind, context: Mapping[str, Any] = None) -> AppError:
    """네트워크 오류 (HTTP 상태 없음 = 0)"""
    _check_category(kind, ErrorCategory.NETWORK)
    return AppError(kind, message=f"Network error: {kind.code}", http_status=0, context=context)


def api_error(kind: ErrorKind, http_status: int, context: Mapping[str, Any] = None) -> AppError:
    """API 오류 (상태 코드 그대로 전달)"""
    _check_category(kind, ErrorCategory.API)
    return AppError(kind, message=f"API error: {kind.code}", http_status=http_status, context=context)


def auth_error(
    kind: ErrorKind,
    context: Mapping[str, Any] = None,
    http_status: int = None,
) -> AppError:
    """인증 오류 (기본 401, FORBIDDEN 은 403)"""
    _check_category(kind, ErrorCategory.AUTH)
    return AppError(
        kind, message=f"Authentication error: {kind.code}", http_status=http_status, context=context
    )


def profit_error(kind: ErrorKind, context: Mapping[str, Any] = None) -> AppError:
    """이익 계산 / 가격 분석 오류"""
    _check_category(kind, ErrorCategory.PROFIT_CALCULATION)
    return AppError(kind, message=f"Profit calculation error: {kind.code}", context=context)


def cart_error(kind: ErrorKind, context: Mapping[str, Any] = None) -> AppError:
    """장바구니 오류"""
    _check_category(kind, ErrorCategory.CART)
    return AppError(kind, message=f"Cart error: {kind.code}", context=context)


# ============================================================
# 외부 실패 정규화
# ============================================================

_STATUS_DISPATCH = {
    401: lambda: auth_error(ErrorKind.UNAUTHORIZED, http_status=401),
    403: lambda: auth_error(ErrorKind.TOKEN_EXPIRED, http_status=403),
    404: lambda: api_error(ErrorKind.NOT_FOUND, 404),
    429: lambda: api_error(ErrorKind.RATE_LIMIT_EXCEEDED, 429),
    500: lambda: api_error(ErrorKind.INTERNAL_SERVER_ERROR, 500),
}


def _type_names(raw: Any) -> str:
    return " ".join(cls.__name__ for cls in type(raw).__mro__).lower()


def _is_timeout(raw: Any) -> bool:
    # requests.Timeout, httpx.TimeoutException, asyncio.TimeoutError 등
    return isinstance(raw, TimeoutError) or (
        isinstance(raw, BaseException) and "timeout" in _type_names(raw)
    )


def _is_connection_failure(raw: Any) -> bool:
    if isinstance(raw, ConnectionError):
        return True
    if not isinstance(raw, BaseException):
        return False
    names = _type_names(raw)
    return any(token in names for token in ("connectionerror", "connecterror", "transporterror"))


def _extract_status(raw: Any) -> Optional[int]:
    """HTTP 상태 코드 추출 (없으면 None)"""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw

    candidates = []
    if isinstance(raw, Mapping):
        candidates = [raw.get("status"), raw.get("status_code"), raw.get("statusCode")]
    else:
        response = getattr(raw, "response", None)
        candidates = [
            getattr(raw, "status", None),
            getattr(raw, "status_code", None),
            getattr(response, "status_code", None),
            getattr(response, "status", None),
        ]

    for value in candidates:
        if isinstance(value, int) and not isinstance(value, bool) and value > 0:
            return value
    return None


def _has_request(raw: Any) -> bool:
    if isinstance(raw, Mapping):
        return raw.get("request") is not None
    try:
        return getattr(raw, "request", None) is not None
    except RuntimeError:
        # httpx 는 request 미할당 시 RuntimeError 를 던진다
        return False


def parse_external_failure(raw: Any) -> AppError:
    """외부에서 관찰된 실패를 AppError 하나로 정규화 (전역 함수, 예외 없음)

    처리 순서:
        AppError → 그대로 반환
        타임아웃 → NETWORK_TIMEOUT (0)
        연결 실패 → CONNECTION_FAILED (0)
        HTTP 상태 → 401/403/404/429/500 고정 매핑, 그 외 API_UNAVAILABLE
        상태 없음 + 요청 객체 있음 → CONNECTION_FAILED
        그 외 → UNKNOWN (500)
    """
    if isinstance(raw, AppError):
        return raw

    if _is_timeout(raw):
        return network_error(ErrorKind.NETWORK_TIMEOUT, {"error_type": type(raw).__name__})

    if _is_connection_failure(raw):
        return network_error(ErrorKind.CONNECTION_FAILED, {"error_type": type(raw).__name__})

    status = _extract_status(raw)
    if status is not None:
        factory = _STATUS_DISPATCH.get(status)
        if factory is not None:
            return factory()
        return api_error(ErrorKind.API_UNAVAILABLE, status, {"status": status})

    if _has_request(raw):
        return network_error(ErrorKind.CONNECTION_FAILED, {"error_type": type(raw).__name__})

    detail = str(raw) if raw is not None else ""
    return make_error(
        ErrorKind.UNKNOWN,
        context={"error_type": type(raw).__name__, "detail": detail},
        http_status=500,
        message=detail or "Unknown error occurred",
    )

