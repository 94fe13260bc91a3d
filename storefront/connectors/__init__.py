"""
External service connectors
"""
from .rates import RatesConnector, get_rates_connector
from .payments import PaymentError, PaymentsConnector, get_payments_connector
from .mailer import Mailer, get_mailer

__all__ = [
    "RatesConnector",
    "get_rates_connector",
    "PaymentError",
    "PaymentsConnector",
    "get_payments_connector",
    "Mailer",
    "get_mailer",
]
