"""
Configuração da aplicação via variáveis de ambiente
"""
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    # Backend que executa o cálculo de juros pós-fixados sobre o CDI
    CALCULO_API_URL = os.environ.get('CALCULO_API_URL', 'https://localhost:7018/api')
    CALCULO_API_TIMEOUT = float(os.environ.get('CALCULO_API_TIMEOUT', '10'))
    # Certificado de desenvolvimento do backend local é autoassinado
    CALCULO_API_VERIFY_SSL = _env_bool('CALCULO_API_VERIFY_SSL', True)

    PAGE_SIZE = int(os.environ.get('PAGE_SIZE', '10'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    HOST = os.environ.get('HOST', '127.0.0.1')
    PORT = int(os.environ.get('PORT', '5000'))
    DEBUG = _env_bool('APP_DEBUG', False)
