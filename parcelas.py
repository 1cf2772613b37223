"""
Tipos das parcelas trocados entre formulário, backend de cálculo e tabela
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import List, Dict

TRUE_VALUES = ('true', '1', 'on')
FALSE_VALUES = ('false', '0', 'off', '')


def read_bool(value) -> bool:
    """Aceita bool ou texto de checkbox/JSON ('true', 'on', '1', 'false', ...)"""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ValueError(f"Valor booleano inválido: {value!r}")


def check_iso_date(value: str) -> str:
    """Valida data ISO (aaaa-mm-dd, com horário opcional) e a devolve sem alteração"""
    try:
        datetime.strptime(value.split('T')[0], '%Y-%m-%d')
    except ValueError:
        raise ValueError(f"Data fora do formato ISO: {value!r}")
    return value


class TipoParcela(IntEnum):
    """0 = Principal, 1 = Juros"""
    PRINCIPAL = 0
    JUROS = 1

    @property
    def label(self) -> str:
        return 'Principal' if self is TipoParcela.PRINCIPAL else 'Juros'


@dataclass
class ParcelaFormulario:
    """Linha do formulário, ainda no formato digitado pelo usuário"""
    tipo: TipoParcela = TipoParcela.PRINCIPAL
    valor_principal: str = ''
    vencimento: str = ''
    liquidada: bool = False

    def __post_init__(self):
        self.tipo = TipoParcela(int(self.tipo))
        if self.tipo is TipoParcela.JUROS:
            self.valor_principal = '0'

    def to_json(self) -> Dict:
        return {
            'tipo': int(self.tipo),
            'valorPrincipal': self.valor_principal,
            'vencimento': self.vencimento,
            'liquidada': self.liquidada,
        }


@dataclass
class Parcela:
    tipo: TipoParcela
    valor_principal: float
    vencimento: str
    liquidada: bool = False

    def to_json(self) -> Dict:
        return {
            'tipo': int(self.tipo),
            'valorPrincipal': self.valor_principal,
            'vencimento': self.vencimento,
            'liquidada': self.liquidada,
        }


@dataclass
class ParcelaResultado:
    tipo: TipoParcela
    valor_principal: float
    valor_juros: float
    vencimento: str
    liquidada: bool = False

    @classmethod
    def from_json(cls, data: Dict) -> 'ParcelaResultado':
        """
        Converte uma linha da resposta do backend.

        Levanta ValueError se algum campo obrigatório estiver ausente ou inválido.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Parcela inválida na resposta: {data!r}")
        try:
            return cls(
                tipo=TipoParcela(int(data['tipo'])),
                valor_principal=float(data.get('valorPrincipal') or 0),
                valor_juros=float(data.get('valorJuros') or 0),
                vencimento=check_iso_date(str(data['vencimento'])),
                liquidada=read_bool(data.get('liquidada', False)),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Parcela inválida na resposta: {data!r}") from e

    def to_json(self) -> Dict:
        return {
            'tipo': int(self.tipo),
            'valorPrincipal': self.valor_principal,
            'valorJuros': self.valor_juros,
            'vencimento': self.vencimento,
            'liquidada': self.liquidada,
        }


@dataclass
class CalculoRequest:
    percentual_cdi: float
    spread_anual: float
    data_inicial: str
    data_referencia: str
    parcelas: List[Parcela] = field(default_factory=list)

    def to_json(self) -> Dict:
        return {
            'percentualCdi': self.percentual_cdi,
            'spreadAnual': self.spread_anual,
            'dataInicial': self.data_inicial,
            'dataReferencia': self.data_referencia,
            'parcelas': [p.to_json() for p in self.parcelas],
        }


@dataclass
class CalculoResponse:
    parcelas: List[ParcelaResultado] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Dict) -> 'CalculoResponse':
        if not isinstance(data, dict) or not isinstance(data.get('parcelas'), list):
            raise ValueError("Resposta sem lista de parcelas")
        return cls(parcelas=[ParcelaResultado.from_json(p) for p in data['parcelas']])
