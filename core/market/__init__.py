from .models import CandleInterval, Exchange, Quote, Scrip, VixSnapshot

__all__ = ["CandleInterval", "Exchange", "Quote", "Scrip", "VixSnapshot"]
