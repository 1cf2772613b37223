"""
Tabela de resultados: ordenação, filtro por tipo, paginação e exportação
"""

from dataclasses import dataclass, asdict
from typing import Dict, List, Mapping, Optional

import numpy as np
import pandas as pd

from formatting import format_currency, format_iso_date
from parcelas import ParcelaResultado, TipoParcela

COLUMNS = [
    ('tipo', 'Tipo'),
    ('liquidada', 'Liquidada'),
    ('vencimento', 'Vencimento'),
    ('valorPrincipal', 'Valor Principal'),
    ('valorJuros', 'Valor Juros'),
]
COLUMN_KEYS = [key for key, _ in COLUMNS]

FILTROS_TIPO = [('todos', 'Todos'), ('0', 'Principal'), ('1', 'Juros')]

EMPTY_MESSAGE = "Nenhum resultado encontrado."


@dataclass
class TableState:
    sort_by: Optional[str] = None
    descending: bool = False
    tipo_filter: str = 'todos'
    page: int = 0

    @classmethod
    def from_mapping(cls, data: Mapping) -> 'TableState':
        """Lê o estado enviado pela página (ordenacao, ordem, filtroTipo, filtroAplicado, pagina)"""
        sort_by = data.get('ordenacao') or None
        if sort_by not in COLUMN_KEYS:
            sort_by = None

        descending = data.get('ordem') == 'desc' or data.get('desc') is True

        tipo_filter = str(data.get('filtroTipo') or 'todos')
        if tipo_filter not in dict(FILTROS_TIPO):
            tipo_filter = 'todos'

        try:
            page = max(int(data.get('pagina') or 0), 0)
        except (TypeError, ValueError):
            page = 0

        # Select alterado junto com outra ação: o novo filtro volta à primeira página
        applied = data.get('filtroAplicado')
        if applied is not None and str(applied) != tipo_filter:
            page = 0

        return cls(sort_by=sort_by, descending=descending and sort_by is not None,
                   tipo_filter=tipo_filter, page=page)

    def toggle_sort(self, column: str):
        """Primeiro clique ordena crescente; clicar de novo numa coluna crescente inverte"""
        if column not in COLUMN_KEYS:
            raise ValueError(f"Coluna inválida: {column}")
        if self.sort_by == column and not self.descending:
            self.descending = True
        else:
            self.sort_by = column
            self.descending = False
        self.page = 0

    def set_filter(self, tipo_filter: str):
        self.tipo_filter = tipo_filter if tipo_filter in dict(FILTROS_TIPO) else 'todos'
        self.page = 0

    def to_json(self) -> Dict:
        return asdict(self)


class ResultsTable:
    """
    Grade das parcelas calculadas pelo backend
    """

    def __init__(self, parcelas: List[ParcelaResultado], page_size: int = 10):
        self.page_size = page_size
        self.df = pd.DataFrame([p.to_json() for p in parcelas], columns=COLUMN_KEYS)
        self.df = self.df.astype({
            'tipo': int,
            'liquidada': bool,
            'valorPrincipal': float,
            'valorJuros': float,
        })
        # Vencimento pode vir com horário (2026-04-15T00:00:00)
        self.df['_data'] = pd.to_datetime(
            self.df['vencimento'].astype(str).str.split('T').str[0],
            format='%Y-%m-%d', errors='coerce'
        )

    def filtered(self, state: TableState) -> pd.DataFrame:
        df = self.df
        if state.tipo_filter != 'todos':
            df = df[df['tipo'].astype(str) == state.tipo_filter]
        if state.sort_by:
            key = '_data' if state.sort_by == 'vencimento' else state.sort_by
            df = df.sort_values(key, ascending=not state.descending, kind='mergesort')
        return df

    def page_count(self, total_rows: int) -> int:
        return int(np.ceil(total_rows / self.page_size))

    @staticmethod
    def _text_column(values, formatter) -> np.ndarray:
        return np.array([formatter(v) for v in values], dtype=object)

    @classmethod
    def format_rows(cls, df: pd.DataFrame) -> List[Dict]:
        is_juros = (df['tipo'] == int(TipoParcela.JUROS)).to_numpy(dtype=bool)
        display = pd.DataFrame({
            'tipo': np.where(is_juros, TipoParcela.JUROS.label, TipoParcela.PRINCIPAL.label),
            'liquidada': np.where(df['liquidada'].to_numpy(dtype=bool), 'Sim', 'Não'),
            'vencimento': cls._text_column(df['vencimento'], lambda v: format_iso_date(str(v))),
            'valorPrincipal': np.where(is_juros, '-',
                                       cls._text_column(df['valorPrincipal'], format_currency)),
            'valorJuros': np.where(is_juros,
                                   cls._text_column(df['valorJuros'], format_currency), '-'),
            'juros': is_juros,
        }, columns=COLUMN_KEYS + ['juros'])
        return [
            {key: (bool(value) if key == 'juros' else str(value)) for key, value in row.items()}
            for row in display.to_dict('records')
        ]

    def totals(self, df: pd.DataFrame) -> Dict[str, float]:
        principal = df.loc[df['tipo'] == int(TipoParcela.PRINCIPAL), 'valorPrincipal'].sum()
        juros = df.loc[df['tipo'] == int(TipoParcela.JUROS), 'valorJuros'].sum()
        return {'principal': float(principal), 'juros': float(juros)}

    def view(self, state: TableState) -> Dict:
        """
        Página atual da tabela já formatada para exibição
        """
        df = self.filtered(state)
        page_count = self.page_count(len(df))
        page = min(max(state.page, 0), max(page_count - 1, 0))
        start = page * self.page_size
        page_df = df.iloc[start:start + self.page_size]

        totals = self.totals(df)

        return {
            'columns': [
                {
                    'key': key,
                    'label': label,
                    'sorted': (('desc' if state.descending else 'asc')
                               if state.sort_by == key else None),
                }
                for key, label in COLUMNS
            ],
            'rows': self.format_rows(page_df),
            'page_index': page,
            'page_count': page_count,
            'page_label': f"Página {page + 1} de {page_count or 1}",
            'can_previous': page > 0,
            'can_next': page + 1 < page_count,
            'total_rows': int(len(df)),
            'total_principal': format_currency(totals['principal']),
            'total_juros': format_currency(totals['juros']),
            'empty_message': EMPTY_MESSAGE,
        }

    def to_csv(self, state: TableState) -> str:
        """Exporta todas as linhas filtradas/ordenadas (sem paginação)"""
        df = self.filtered(state)
        is_juros = (df['tipo'] == int(TipoParcela.JUROS)).to_numpy(dtype=bool)
        export = pd.DataFrame({
            'Tipo': np.where(is_juros, TipoParcela.JUROS.label, TipoParcela.PRINCIPAL.label),
            'Liquidada': np.where(df['liquidada'].to_numpy(dtype=bool), 'Sim', 'Não'),
            'Vencimento': self._text_column(df['vencimento'], lambda v: format_iso_date(str(v))),
            'Valor Principal': df['valorPrincipal'].to_numpy(),
            'Valor Juros': df['valorJuros'].to_numpy(),
        })
        return export.to_csv(index=False, sep=';', decimal=',', float_format='%.2f')
