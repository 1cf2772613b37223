"""
Aplicação Web Flask - Cálculo de Juros Pós-Fixados (CDI)
"""
import json
import logging

from flask import Flask, Response, jsonify, render_template, request
from flask_cors import CORS

from calculo_client import CalculoApiClient, CalculoApiError
from config import Config
from formatting import format_currency
from formulario import ERRO_CONEXAO, FormularioCalculo
from parcelas import ParcelaResultado, TipoParcela
from results_table import COLUMN_KEYS, FILTROS_TIPO, ResultsTable, TableState
from schedule_generator import InstallmentScheduleGenerator, ParametrosCronograma

app = Flask(__name__)
app.config.from_object(Config)
CORS(app)

CRONOGRAMA_PREFIX = 'cronograma-'


def get_calculo_client() -> CalculoApiClient:
    return CalculoApiClient(
        app.config['CALCULO_API_URL'],
        timeout=app.config['CALCULO_API_TIMEOUT'],
        verify_ssl=app.config['CALCULO_API_VERIFY_SSL'],
    )


def load_resultados(raw: str):
    """Lê o JSON das parcelas calculadas guardado no campo oculto da página"""
    if not raw:
        return []
    try:
        return [ParcelaResultado.from_json(p) for p in json.loads(raw)]
    except (ValueError, TypeError) as e:
        app.logger.warning("Resultados inválidos no formulário: %s", e)
        return []


def cronograma_fields(form) -> dict:
    return {
        key[len(CRONOGRAMA_PREFIX):]: value
        for key, value in form.items()
        if key.startswith(CRONOGRAMA_PREFIX)
    }


def render_page(formulario: FormularioCalculo, erros: dict = None, resultados=None,
                table_state: TableState = None, cronograma: dict = None, status: int = 200):
    resultados = resultados or []
    table_state = table_state or TableState()
    tabela = None
    if resultados:
        tabela = ResultsTable(resultados, page_size=app.config['PAGE_SIZE']).view(table_state)

    cronograma = cronograma or {}
    cronograma.setdefault('dataInicial', formulario.data_inicial)

    return render_template(
        'index.html',
        formulario=formulario,
        erros=erros or {},
        tabela=tabela,
        table_state=table_state,
        resultados_json=json.dumps([p.to_json() for p in resultados]),
        filtros_tipo=FILTROS_TIPO,
        cronograma=cronograma,
        format_currency=format_currency,
        JUROS=TipoParcela.JUROS,
    ), status


@app.route('/', methods=['GET'])
def index():
    """Página principal com formulário"""
    return render_page(FormularioCalculo.default())


@app.route('/', methods=['POST'])
def submit():
    """Trata as ações da página: parcelas, cronograma, cálculo e tabela"""
    acao = request.form.get('acao', '')
    formulario = FormularioCalculo.from_form(request.form)
    resultados = load_resultados(request.form.get('resultados', ''))
    table_state = TableState.from_mapping(request.form)
    cronograma = cronograma_fields(request.form)
    erros = {}

    if acao == 'adicionar':
        formulario.add_parcela()

    elif acao.startswith('remover-') and acao[len('remover-'):].isdigit():
        formulario.remove_parcela(int(acao[len('remover-'):]))

    elif acao == 'gerar':
        params = dict(cronograma)
        if params.pop('liquidarAteReferencia', None):
            params['dataReferencia'] = formulario.data_referencia
        try:
            generator = InstallmentScheduleGenerator()
            formulario.parcelas = generator.generate(ParametrosCronograma.from_dict(params))
        except ValueError as e:
            erros['cronograma'] = str(e)

    elif acao == 'calcular':
        erros = formulario.validate()
        if not erros:
            try:
                resposta = get_calculo_client().calcular_parcelas(formulario.to_request())
                resultados = resposta.parcelas
                table_state = TableState()
            except CalculoApiError as e:
                app.logger.error("Erro ao calcular parcelas: %s", e)
                erros['geral'] = ERRO_CONEXAO

    elif acao.startswith('ordenar-') and acao[len('ordenar-'):] in COLUMN_KEYS:
        table_state.toggle_sort(acao[len('ordenar-'):])

    elif acao == 'filtrar':
        table_state.set_filter(request.form.get('filtroTipo', 'todos'))

    elif acao == 'anterior':
        table_state.page = max(table_state.page - 1, 0)

    elif acao == 'proxima':
        table_state.page += 1

    return render_page(formulario, erros, resultados, table_state, cronograma)


@app.route('/exportar', methods=['POST'])
def exportar():
    """Exporta as parcelas calculadas em CSV"""
    resultados = load_resultados(request.form.get('resultados', ''))
    table_state = TableState.from_mapping(request.form)
    csv = ResultsTable(resultados).to_csv(table_state)
    return Response(
        csv,
        mimetype='text/csv',
        headers={'Content-Disposition': 'attachment; filename=parcelas.csv'},
    )


@app.route('/api/calcular', methods=['POST'])
def api_calcular():
    """Endpoint JSON: valida o formulário e repassa ao backend de cálculo"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'success': False, 'errors': {'geral': 'Corpo JSON inválido'}}), 400

    try:
        formulario = FormularioCalculo.from_json(data)
    except (ValueError, TypeError, AttributeError) as e:
        return jsonify({'success': False, 'errors': {'geral': f'Dados inválidos: {e}'}}), 400

    erros = formulario.validate()
    if erros:
        return jsonify({'success': False, 'errors': erros}), 400

    try:
        resposta = get_calculo_client().calcular_parcelas(formulario.to_request())
    except CalculoApiError as e:
        app.logger.error("Erro ao calcular parcelas: %s", e)
        return jsonify({'success': False, 'errors': {'geral': ERRO_CONEXAO}}), 502

    return jsonify({
        'success': True,
        'parcelas': [p.to_json() for p in resposta.parcelas],
    })


@app.route('/api/gerar-parcelas', methods=['POST'])
def api_gerar_parcelas():
    """Endpoint JSON: gera cronograma de parcelas"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'Corpo JSON inválido'}), 400

    try:
        params = ParametrosCronograma.from_dict(data)
        parcelas = InstallmentScheduleGenerator().generate(params)
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400

    return jsonify({
        'success': True,
        'parcelas': [p.to_json() for p in parcelas],
    })


@app.route('/api/tabela', methods=['POST'])
def api_tabela():
    """Endpoint JSON: página da tabela de resultados para o estado informado"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'success': False, 'error': 'Corpo JSON inválido'}), 400

    try:
        resultados = [ParcelaResultado.from_json(p) for p in data.get('parcelas') or []]
        table_state = TableState.from_mapping(data)
        view = ResultsTable(resultados, page_size=app.config['PAGE_SIZE']).view(table_state)
    except ValueError as e:
        return jsonify({'success': False, 'error': str(e)}), 400
    except Exception:
        app.logger.exception("Erro ao montar tabela")
        return jsonify({'success': False, 'error': 'Erro ao montar tabela'}), 500

    return jsonify({'success': True, 'tabela': view})


if __name__ == '__main__':
    logging.basicConfig(level=app.config['LOG_LEVEL'])
    print("=" * 60)
    print("  Cálculo de Juros Pós-Fixados - Servidor Web")
    print("=" * 60)
    print(f"\nServidor rodando em: http://{app.config['HOST']}:{app.config['PORT']}")
    print(f"Backend de cálculo: {app.config['CALCULO_API_URL']}")
    print("\nPressione Ctrl+C para parar o servidor\n")
    app.run(debug=app.config['DEBUG'], host=app.config['HOST'], port=app.config['PORT'])
