"""
Cliente HTTP do backend de cálculo de juros pós-fixados
"""
import logging

import requests

from parcelas import CalculoRequest, CalculoResponse

logger = logging.getLogger(__name__)


class CalculoApiError(Exception):
    """Falha de comunicação ou resposta inválida do backend de cálculo"""


class CalculoApiClient:
    ENDPOINT = '/jurosPosFixados/calcular-parcelas'

    def __init__(self, base_url: str, timeout: float = 10, verify_ssl: bool = True,
                 session: requests.Session = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.verify_ssl = verify_ssl
        self.session = session or requests.Session()

    def calcular_parcelas(self, request: CalculoRequest) -> CalculoResponse:
        """
        Envia parâmetros e parcelas ao backend e retorna as parcelas com juros calculados.

        Levanta CalculoApiError em erro de rede, status HTTP de erro ou corpo inválido.
        """
        url = self.base_url + self.ENDPOINT
        logger.info("Enviando %d parcelas para %s", len(request.parcelas), url)

        try:
            response = self.session.post(
                url,
                json=request.to_json(),
                timeout=self.timeout,
                verify=self.verify_ssl,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error("Erro ao calcular parcelas: %s", e)
            raise CalculoApiError(f"Falha ao chamar {url}: {e}") from e

        try:
            result = CalculoResponse.from_json(response.json())
        except ValueError as e:
            logger.error("Resposta inválida do backend: %s", e)
            raise CalculoApiError(f"Resposta inválida de {url}: {e}") from e

        logger.info("Backend retornou %d parcelas", len(result.parcelas))
        return result
