"""
Formatação e leitura de valores no padrão brasileiro (moeda, percentual e datas)
"""

import calendar
import math
import re
from collections import namedtuple
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

DataBR = namedtuple('DataBR', ['iso', 'display'])

_BR_DATE_RE = re.compile(r'^(\d{1,2})/(\d{1,2})/(\d{4})$')
_NUMBER_PREFIX_RE = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)')


def _swap_separators(text: str) -> str:
    # 1,234,567.89 -> 1.234.567,89
    return text.replace(',', 'X').replace('.', ',').replace('X', '.')


def format_currency(value: Union[str, float, None]) -> str:
    """Formata valor em real: 1234.5 -> 'R$ 1.234,50'. Vazio ou inválido -> ''"""
    if value is None or value == '':
        return ''
    try:
        number = float(value)
    except (TypeError, ValueError):
        return ''
    if not math.isfinite(number):
        return ''

    # repr() guarda o decimal digitado (2.675), não a expansão binária (2.67499...)
    cents = Decimal(repr(abs(number))).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)
    text = _swap_separators(f"{cents:,.2f}")
    return f"-R$ {text}" if number < 0 else f"R$ {text}"


def parse_typed_currency(typed: str) -> str:
    """
    Interpreta o texto digitado como centavos.

    Apenas os dígitos são considerados: 'R$ 1.234,56' -> '1234.56', '5' -> '0.05'.
    Sem dígitos retorna ''.
    """
    digits = re.sub(r'\D', '', typed or '')
    if not digits:
        return ''
    cents = int(digits)
    return f"{cents / 100:.2f}"


def format_percent(value: float) -> str:
    """Formata fração como percentual com 1 a 4 casas: 0.149 -> '14,9'"""
    if value is None or math.isnan(value):
        return ''
    percent = value * 100
    if percent == 0:
        percent = 0.0
    integer, decimals = f"{percent:,.4f}".split('.')
    decimals = decimals.rstrip('0') or '0'
    return f"{integer.replace(',', '.')},{decimals}"


def parse_percent(typed: str) -> float:
    """
    Lê percentual digitado e retorna fração: '14,9' -> 0.149.

    Retorna 0 quando o texto não começa com um número.
    """
    cleaned = re.sub(r'[^\d,.\-]', '', typed or '').replace(',', '.', 1)
    match = _NUMBER_PREFIX_RE.match(cleaned)
    if not match:
        return 0.0
    return float(match.group(0)) / 100


def normalize_typed_date(typed: str) -> str:
    """Monta dd, dd/mm ou dd/mm/aaaa a partir dos dígitos digitados (máx. 8)"""
    digits = re.sub(r'\D', '', typed or '')[:8]
    day, month, year = digits[:2], digits[2:4], digits[4:8]

    if len(digits) <= 2:
        return day
    if len(digits) <= 4:
        return f"{day}/{month}"
    return f"{day}/{month}/{year}"


def parse_br_date(value: str) -> Optional[DataBR]:
    """
    Valida data dd/mm/aaaa.

    Retorna DataBR(iso='aaaa-mm-dd', display='dd/mm/aaaa') ou None se inválida.
    """
    match = _BR_DATE_RE.match(value or '')
    if not match:
        return None

    day, month, year = (int(g) for g in match.groups())
    if month < 1 or month > 12:
        return None
    if year < 1:
        return None
    max_day = calendar.monthrange(year, month)[1]
    if day < 1 or day > max_day:
        return None

    return DataBR(
        iso=f"{year:04d}-{month:02d}-{day:02d}",
        display=f"{day:02d}/{month:02d}/{year:04d}",
    )


def br_to_date(value: str) -> Optional[date]:
    parsed = parse_br_date(value)
    if parsed is None:
        return None
    return datetime.strptime(parsed.iso, '%Y-%m-%d').date()


def format_iso_date(iso: str) -> str:
    """'2026-04-15T00:00:00' -> '15/04/2026'"""
    year, month, day = iso.split('T')[0].split('-')
    return f"{day}/{month}/{year}"


def format_date(value: date) -> str:
    return value.strftime('%d/%m/%Y')
