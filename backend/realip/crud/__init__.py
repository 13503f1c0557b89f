from .options import get_option_value, insert_option_if_absent, upsert_option
