"""
Estado do formulário de parcelas: valores padrão, normalização e validação
"""

import math
import re
from typing import Dict, List, Mapping

from formatting import (format_percent, normalize_typed_date, parse_br_date,
                        parse_percent, parse_typed_currency)
from parcelas import (TRUE_VALUES, CalculoRequest, Parcela, ParcelaFormulario, TipoParcela,
                      read_bool)

ERRO_CONEXAO = "Erro ao calcular parcelas. Verifique a conexão."

_ROW_FIELD_RE = re.compile(r'^parcelas-(\d+)-(\w+)$')


def normalize_date_field(typed: str) -> str:
    """Reexibe data válida como dd/mm/aaaa; senão mantém só os dígitos normalizados"""
    parsed = parse_br_date((typed or '').strip())
    if parsed:
        return parsed.display
    return normalize_typed_date(typed)


def _is_valid_number(value) -> bool:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return not math.isnan(number) and number >= 0


class FormularioCalculo:
    """Parâmetros do cálculo e lista de parcelas como exibidos na tela"""

    def __init__(self,
                 percentual_cdi: float = 0.149,
                 spread_anual: float = 0.0,
                 data_inicial: str = '01/01/2026',
                 data_referencia: str = '15/04/2026',
                 parcelas: List[ParcelaFormulario] = None,
                 percentual_cdi_display: str = None,
                 spread_anual_display: str = None):
        self.percentual_cdi = percentual_cdi
        self.spread_anual = spread_anual
        self.percentual_cdi_display = (percentual_cdi_display if percentual_cdi_display is not None
                                       else format_percent(percentual_cdi))
        self.spread_anual_display = (spread_anual_display if spread_anual_display is not None
                                     else format_percent(spread_anual))
        self.data_inicial = data_inicial
        self.data_referencia = data_referencia
        self.parcelas = parcelas if parcelas is not None else [ParcelaFormulario()]

    @classmethod
    def default(cls) -> 'FormularioCalculo':
        return cls(percentual_cdi_display='14,9', spread_anual_display='0')

    @classmethod
    def from_form(cls, form: Mapping[str, str]) -> 'FormularioCalculo':
        """
        Lê os campos enviados pela página, aplicando a mesma normalização
        feita ao sair de cada campo (percentuais, datas e moeda).
        """
        percentual_cdi = parse_percent(form.get('percentualCdi', ''))
        spread_anual = parse_percent(form.get('spreadAnual', ''))

        rows: Dict[int, Dict[str, str]] = {}
        for key in form.keys():
            match = _ROW_FIELD_RE.match(key)
            if match:
                rows.setdefault(int(match.group(1)), {})[match.group(2)] = form.get(key)

        parcelas = []
        for index in sorted(rows):
            row = rows[index]
            try:
                tipo = TipoParcela(int(row.get('tipo', 0)))
            except ValueError:
                tipo = TipoParcela.PRINCIPAL
            parcelas.append(ParcelaFormulario(
                tipo=tipo,
                valor_principal=parse_typed_currency(row.get('valorPrincipal', '')),
                vencimento=normalize_date_field(row.get('vencimento', '')),
                liquidada=row.get('liquidada') in TRUE_VALUES,
            ))

        return cls(
            percentual_cdi=percentual_cdi,
            spread_anual=spread_anual,
            data_inicial=normalize_date_field(form.get('dataInicial', '')),
            data_referencia=normalize_date_field(form.get('dataReferencia', '')),
            parcelas=parcelas,
        )

    @classmethod
    def from_json(cls, data: Dict) -> 'FormularioCalculo':
        """
        Lê o formulário enviado via API JSON.

        Percentuais podem vir como fração numérica (0.149) ou texto digitado ('14,9').
        """
        def read_percent(value):
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return float(value)
            if value is None:
                return float('nan')
            return parse_percent(str(value))

        parcelas = []
        for row in data.get('parcelas') or []:
            valor = row.get('valorPrincipal', '')
            if isinstance(valor, (int, float)) and not isinstance(valor, bool):
                valor = str(valor)
            parcelas.append(ParcelaFormulario(
                tipo=TipoParcela(int(row.get('tipo', 0))),
                valor_principal=valor or '',
                vencimento=normalize_date_field(str(row.get('vencimento') or '')),
                liquidada=read_bool(row.get('liquidada', False)),
            ))

        return cls(
            percentual_cdi=read_percent(data.get('percentualCdi')),
            spread_anual=read_percent(data.get('spreadAnual')),
            data_inicial=normalize_date_field(str(data.get('dataInicial') or '')),
            data_referencia=normalize_date_field(str(data.get('dataReferencia') or '')),
            parcelas=parcelas,
        )

    def add_parcela(self):
        self.parcelas.append(ParcelaFormulario())

    def remove_parcela(self, index: int) -> bool:
        """Remove a parcela; a última parcela restante nunca é removida"""
        if len(self.parcelas) <= 1 or not 0 <= index < len(self.parcelas):
            return False
        del self.parcelas[index]
        return True

    def update_parcela(self, index: int, tipo: int = None, valor_principal: str = None,
                       vencimento: str = None, liquidada: bool = None):
        """Atualiza campos de uma parcela; trocar para Juros zera o valor principal"""
        current = self.parcelas[index]
        self.parcelas[index] = ParcelaFormulario(
            tipo=current.tipo if tipo is None else tipo,
            valor_principal=current.valor_principal if valor_principal is None else valor_principal,
            vencimento=current.vencimento if vencimento is None else vencimento,
            liquidada=current.liquidada if liquidada is None else liquidada,
        )

    def validate(self) -> Dict[str, str]:
        """Retorna {campo: mensagem}; vazio quando o formulário pode ser enviado"""
        errors = {}

        if not _is_valid_number(self.percentual_cdi):
            errors['percentualCdi'] = "Percentual CDI deve ser um número >= 0"

        if not _is_valid_number(self.spread_anual):
            errors['spreadAnual'] = "Spread anual deve ser um número >= 0"

        if not self.data_inicial:
            errors['dataInicial'] = "Data inicial é obrigatória"
        elif not parse_br_date(self.data_inicial):
            errors['dataInicial'] = "Data inicial deve estar em dd/mm/aaaa"

        if not self.data_referencia:
            errors['dataReferencia'] = "Data de referência é obrigatória"
        elif not parse_br_date(self.data_referencia):
            errors['dataReferencia'] = "Data de referência deve estar em dd/mm/aaaa"

        if not self.parcelas:
            errors['parcelas'] = "Adicione pelo menos uma parcela"

        for index, parcela in enumerate(self.parcelas):
            if not parcela.vencimento:
                errors[f'parcela_{index}_vencimento'] = "Vencimento é obrigatório"
            elif not parse_br_date(parcela.vencimento):
                errors[f'parcela_{index}_vencimento'] = "Vencimento deve estar em dd/mm/aaaa"

            if not _is_valid_number(parcela.valor_principal):
                errors[f'parcela_{index}_valor'] = "Valor deve ser um número >= 0"

        return errors

    def to_request(self) -> CalculoRequest:
        """Monta o payload do backend; chamar somente após validate() sem erros"""
        return CalculoRequest(
            percentual_cdi=self.percentual_cdi,
            spread_anual=self.spread_anual,
            data_inicial=parse_br_date(self.data_inicial).iso,
            data_referencia=parse_br_date(self.data_referencia).iso,
            parcelas=[
                Parcela(
                    tipo=p.tipo,
                    valor_principal=float(p.valor_principal),
                    vencimento=parse_br_date(p.vencimento).iso,
                    liquidada=p.liquidada,
                )
                for p in self.parcelas
            ],
        )
