from .conv import is_placeholder, parse_trade_date, to_dec, to_dec_strict

__all__ = ["to_dec", "to_dec_strict", "is_placeholder", "parse_trade_date"]
