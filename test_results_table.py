import unittest

from parcelas import ParcelaResultado, TipoParcela
from results_table import EMPTY_MESSAGE, ResultsTable, TableState


def make_results(count=12):
    """Alterna principal/juros em meses consecutivos de 2026/2027"""
    results = []
    for i in range(count):
        month = i % 12 + 1
        year = 2026 + i // 12
        tipo = TipoParcela.PRINCIPAL if i % 2 == 0 else TipoParcela.JUROS
        results.append(ParcelaResultado(
            tipo=tipo,
            valor_principal=100.0 * (i + 1) if tipo is TipoParcela.PRINCIPAL else 0.0,
            valor_juros=0.0 if tipo is TipoParcela.PRINCIPAL else 10.5 * i,
            vencimento=f"{year}-{month:02d}-15T00:00:00",
            liquidada=i < 3,
        ))
    return results


class TableStateTest(unittest.TestCase):
    def test_toggle_sort_cycle(self):
        state = TableState(page=3)
        state.toggle_sort('vencimento')
        self.assertEqual((state.sort_by, state.descending, state.page), ('vencimento', False, 0))
        state.toggle_sort('vencimento')
        self.assertEqual((state.sort_by, state.descending), ('vencimento', True))
        state.toggle_sort('vencimento')
        self.assertEqual((state.sort_by, state.descending), ('vencimento', False))
        state.toggle_sort('tipo')
        self.assertEqual((state.sort_by, state.descending), ('tipo', False))

    def test_toggle_sort_rejects_unknown_column(self):
        with self.assertRaises(ValueError):
            TableState().toggle_sort('saldo')

    def test_from_mapping_sanitizes(self):
        state = TableState.from_mapping({
            'ordenacao': 'xyz', 'ordem': 'desc', 'filtroTipo': '7', 'pagina': '-2',
        })
        self.assertEqual(state, TableState())

        state = TableState.from_mapping({
            'ordenacao': 'valorJuros', 'ordem': 'desc', 'filtroTipo': '1', 'pagina': '2',
        })
        self.assertEqual(state, TableState('valorJuros', True, '1', 2))

    def test_from_mapping_resets_page_when_filter_changed(self):
        state = TableState.from_mapping({'filtroTipo': '0', 'filtroAplicado': 'todos', 'pagina': '3'})
        self.assertEqual((state.tipo_filter, state.page), ('0', 0))

        state = TableState.from_mapping({'filtroTipo': '0', 'filtroAplicado': '0', 'pagina': '3'})
        self.assertEqual(state.page, 3)

    def test_filter_resets_page(self):
        state = TableState(page=1)
        state.set_filter('0')
        self.assertEqual((state.tipo_filter, state.page), ('0', 0))


class ResultsTableTest(unittest.TestCase):
    def test_first_page(self):
        view = ResultsTable(make_results()).view(TableState())

        self.assertEqual(len(view['rows']), 10)
        self.assertEqual(view['page_label'], "Página 1 de 2")
        self.assertFalse(view['can_previous'])
        self.assertTrue(view['can_next'])
        self.assertEqual([c['label'] for c in view['columns']],
                         ['Tipo', 'Liquidada', 'Vencimento', 'Valor Principal', 'Valor Juros'])

    def test_cells_are_formatted(self):
        rows = ResultsTable(make_results()).view(TableState())['rows']

        self.assertEqual(rows[0], {
            'tipo': 'Principal', 'liquidada': 'Sim', 'vencimento': '15/01/2026',
            'valorPrincipal': 'R$ 100,00', 'valorJuros': '-', 'juros': False,
        })
        self.assertEqual(rows[1], {
            'tipo': 'Juros', 'liquidada': 'Sim', 'vencimento': '15/02/2026',
            'valorPrincipal': '-', 'valorJuros': 'R$ 10,50', 'juros': True,
        })
        self.assertEqual(rows[3]['liquidada'], 'Não')

    def test_second_page(self):
        view = ResultsTable(make_results()).view(TableState(page=1))

        self.assertEqual(len(view['rows']), 2)
        self.assertEqual(view['page_label'], "Página 2 de 2")
        self.assertTrue(view['can_previous'])
        self.assertFalse(view['can_next'])

    def test_page_beyond_last_is_clamped(self):
        view = ResultsTable(make_results()).view(TableState(page=9))
        self.assertEqual(view['page_index'], 1)

    def test_filter_by_tipo(self):
        view = ResultsTable(make_results()).view(TableState(tipo_filter='1'))

        self.assertEqual(len(view['rows']), 6)
        self.assertTrue(all(row['tipo'] == 'Juros' for row in view['rows']))
        self.assertEqual(view['page_label'], "Página 1 de 1")
        self.assertEqual(view['total_principal'], 'R$ 0,00')
        self.assertEqual(view['total_juros'], 'R$ 378,00')

    def test_sort_descending_by_date(self):
        view = ResultsTable(make_results()).view(
            TableState(sort_by='vencimento', descending=True))

        self.assertEqual(view['rows'][0]['vencimento'], '15/12/2026')
        self.assertEqual(view['columns'][2]['sorted'], 'desc')
        self.assertIsNone(view['columns'][0]['sorted'])

    def test_sort_by_principal(self):
        view = ResultsTable(make_results()).view(
            TableState(sort_by='valorPrincipal', descending=True, tipo_filter='0'))

        self.assertEqual(view['rows'][0]['valorPrincipal'], 'R$ 1.100,00')
        self.assertEqual(view['rows'][-1]['valorPrincipal'], 'R$ 100,00')

    def test_empty_table(self):
        view = ResultsTable([]).view(TableState())

        self.assertEqual(view['rows'], [])
        self.assertEqual(view['page_label'], "Página 1 de 1")
        self.assertFalse(view['can_next'])
        self.assertEqual(view['empty_message'], EMPTY_MESSAGE)

    def test_totals(self):
        view = ResultsTable(make_results()).view(TableState())
        self.assertEqual(view['total_principal'], 'R$ 3.600,00')
        self.assertEqual(view['total_rows'], 12)

    def test_csv_export(self):
        csv = ResultsTable(make_results(2)).to_csv(TableState())
        lines = csv.strip().splitlines()

        self.assertEqual(lines[0], 'Tipo;Liquidada;Vencimento;Valor Principal;Valor Juros')
        self.assertEqual(lines[1], 'Principal;Sim;15/01/2026;100,00;0,00')
        self.assertEqual(lines[2], 'Juros;Sim;15/02/2026;0,00;10,50')


if __name__ == '__main__':
    unittest.main()
