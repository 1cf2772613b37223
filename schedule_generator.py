"""
Gerador de cronograma de parcelas
Fluxos independentes de principal e juros, cada um com intervalo e carência próprios
"""

import calendar
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional

import holidays

from formatting import br_to_date, format_date, parse_typed_currency
from parcelas import ParcelaFormulario, TipoParcela

MAX_PARCELAS = 600
MAX_VALOR_PRINCIPAL = 1_000_000_000_000.0
# Último ano aceito no cronograma; deixa folga para o ajuste de dia útil
MAX_ANO = 9998


@dataclass
class ParametrosCronograma:
    data_inicial: date
    valor_principal: float
    quantidade_parcelas: int
    intervalo_principal: int = 1
    intervalo_juros: int = 1
    carencia_principal: int = 0
    carencia_juros: int = 0
    dia_vencimento: Optional[int] = None
    ajustar_dia_util: bool = False
    data_referencia: Optional[date] = None

    @classmethod
    def from_dict(cls, data: Dict) -> 'ParametrosCronograma':
        """
        Converte parâmetros vindos do formulário ou da API (chaves camelCase).

        Datas em dd/mm/aaaa; valor como número ou texto digitado em moeda.
        Levanta ValueError com mensagem para o usuário.
        """
        data_inicial = br_to_date(str(data.get('dataInicial') or '').strip())
        if data_inicial is None:
            raise ValueError("Data inicial do cronograma deve estar em dd/mm/aaaa")

        data_referencia = None
        if data.get('dataReferencia'):
            data_referencia = br_to_date(str(data['dataReferencia']).strip())
            if data_referencia is None:
                raise ValueError("Data de referência deve estar em dd/mm/aaaa")

        valor = data.get('valorPrincipal')
        if isinstance(valor, (int, float)) and not isinstance(valor, bool):
            valor_principal = float(valor)
        else:
            parsed = parse_typed_currency(str(valor or ''))
            if not parsed:
                raise ValueError("Valor principal do cronograma é obrigatório")
            valor_principal = float(parsed)

        def read_int(key: str, label: str, default: Optional[int]) -> Optional[int]:
            raw = data.get(key)
            if raw is None or str(raw).strip() == '':
                return default
            try:
                return int(str(raw).strip())
            except ValueError:
                raise ValueError(f"{label} deve ser um número inteiro")

        return cls(
            data_inicial=data_inicial,
            valor_principal=valor_principal,
            quantidade_parcelas=read_int('quantidadeParcelas', "Quantidade de parcelas", None),
            intervalo_principal=read_int('intervaloPrincipal', "Intervalo do principal", 1),
            intervalo_juros=read_int('intervaloJuros', "Intervalo dos juros", 1),
            carencia_principal=read_int('carenciaPrincipal', "Carência do principal", 0),
            carencia_juros=read_int('carenciaJuros', "Carência dos juros", 0),
            dia_vencimento=read_int('diaVencimento', "Dia de vencimento", None),
            ajustar_dia_util=data.get('ajustarDiaUtil') in (True, 'on', 'true', '1'),
            data_referencia=data_referencia,
        )


class InstallmentScheduleGenerator:
    """
    Gera a lista de parcelas (principal e juros) a partir dos parâmetros de recorrência
    """

    def __init__(self):
        # Feriados nacionais do Brasil (ANBIMA)
        self.br_holidays = holidays.Brazil(years=range(2020, 2080))

    def is_business_day(self, day: date) -> bool:
        """Verifica se é dia útil (exclui sábados, domingos e feriados nacionais)"""
        return day.weekday() < 5 and day not in self.br_holidays

    def next_business_day(self, day: date) -> date:
        """Retorna o próprio dia se útil, senão o próximo dia útil"""
        next_day = day
        while not self.is_business_day(next_day):
            next_day += timedelta(days=1)
        return next_day

    @staticmethod
    def add_months(base: date, months: int, day: int) -> date:
        """
        Soma meses à data base usando o dia informado.

        Se o dia não existe no mês de destino (ex: 31 de fev), usa o último dia do mês.
        """
        month = base.month + months
        year = base.year + (month - 1) // 12
        month = ((month - 1) % 12) + 1
        last_day = calendar.monthrange(year, month)[1]
        return date(year, month, min(day, last_day))

    def validate(self, params: ParametrosCronograma):
        if params.quantidade_parcelas is None:
            raise ValueError("Quantidade de parcelas é obrigatória")
        if params.quantidade_parcelas < 1:
            raise ValueError("Quantidade de parcelas deve ser maior que zero")
        if params.quantidade_parcelas > MAX_PARCELAS:
            raise ValueError(f"Quantidade de parcelas deve ser no máximo {MAX_PARCELAS}")
        if params.intervalo_principal < 1 or params.intervalo_juros < 1:
            raise ValueError("Intervalos devem ser de pelo menos 1 mês")
        if params.carencia_principal < 0 or params.carencia_juros < 0:
            raise ValueError("Carência não pode ser negativa")
        if params.dia_vencimento is not None and not 1 <= params.dia_vencimento <= 31:
            raise ValueError("Dia de vencimento deve estar entre 1 e 31")
        if not math.isfinite(params.valor_principal):
            raise ValueError("Valor principal deve ser um número finito")
        if params.valor_principal < 0:
            raise ValueError("Valor principal deve ser maior ou igual a zero")
        if params.valor_principal > MAX_VALOR_PRINCIPAL:
            raise ValueError("Valor principal excede o limite de R$ 1.000.000.000.000,00")

        last_offset = params.carencia_principal + params.intervalo_principal * params.quantidade_parcelas
        last_year = params.data_inicial.year + (params.data_inicial.month - 1 + last_offset) // 12
        if last_year > MAX_ANO:
            raise ValueError(f"Cronograma ultrapassa o ano {MAX_ANO}; reduza intervalos ou carência")

    def principal_dates(self, params: ParametrosCronograma) -> List[date]:
        day = params.dia_vencimento or params.data_inicial.day
        return [
            self.add_months(params.data_inicial,
                            params.carencia_principal + params.intervalo_principal * k,
                            day)
            for k in range(1, params.quantidade_parcelas + 1)
        ]

    def interest_dates(self, params: ParametrosCronograma, maturity: date) -> List[date]:
        day = params.dia_vencimento or params.data_inicial.day
        maturity_offset = (params.carencia_principal
                           + params.intervalo_principal * params.quantidade_parcelas)
        dates = []
        m = 1
        while True:
            offset = params.carencia_juros + params.intervalo_juros * m
            # Mês posterior ao do vencimento final: nem monta a data
            if offset > maturity_offset:
                break
            next_date = self.add_months(params.data_inicial, offset, day)
            if next_date > maturity:
                break
            dates.append(next_date)
            m += 1

        # Garante que vencimento está incluído
        if not dates or dates[-1] != maturity:
            dates.append(maturity)
        return dates

    @staticmethod
    def split_principal(valor_principal: float, quantidade: int) -> List[str]:
        """Divide o principal em centavos; a última parcela recebe o resto"""
        total_cents = int(round(valor_principal * 100))
        base, remainder = divmod(total_cents, quantidade)
        cents = [base] * quantidade
        cents[-1] += remainder
        return [f"{c / 100:.2f}" for c in cents]

    def generate(self, params: ParametrosCronograma) -> List[ParcelaFormulario]:
        """
        Gera cronograma ordenado por (vencimento, tipo)
        """
        self.validate(params)

        principal_dates = self.principal_dates(params)
        maturity = principal_dates[-1]
        interest_dates = self.interest_dates(params, maturity)
        amounts = self.split_principal(params.valor_principal, params.quantidade_parcelas)

        rows = [(d, TipoParcela.PRINCIPAL, valor) for d, valor in zip(principal_dates, amounts)]
        rows += [(d, TipoParcela.JUROS, '0') for d in interest_dates]

        if params.ajustar_dia_util:
            rows = [(self.next_business_day(d), tipo, valor) for d, tipo, valor in rows]

        rows.sort(key=lambda row: (row[0], row[1]))

        return [
            ParcelaFormulario(
                tipo=tipo,
                valor_principal=valor,
                vencimento=format_date(due),
                liquidada=params.data_referencia is not None and due < params.data_referencia,
            )
            for due, tipo, valor in rows
        ]
