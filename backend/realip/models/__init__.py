from .options import Option
