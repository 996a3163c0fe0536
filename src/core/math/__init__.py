"""
Core math modules для AMM

Математические примитивы constant-product AMM с гарантией численной стабильности.
"""

# Numerical Safeguards
from src.core.math.numerical_safeguards import (
    # Epsilon constants
    EPS_CALC,
    EPS_FLOAT_COMPARE_ABS,
    EPS_FLOAT_COMPARE_REL,
    # NaN/Inf sanitization
    is_valid_float,
    sanitize_float,
    # Safe division
    safe_divide,
    # Epsilon comparisons
    is_close,
    # Validation
    validate_non_negative,
    validate_positive,
)

# Constant Product Pricing
from src.core.math.constant_product import (
    FEE_RATE,
    QuoteResult,
    RequiredInputResult,
    SwapQuote,
    calculate_price_impact,
    initial_lp_supply,
    lp_tokens_to_mint,
    quote_required_input,
    quote_swap,
    tokens_for_lp,
)

__all__ = [
    # Numerical Safeguards: Epsilon constants
    "EPS_CALC",
    "EPS_FLOAT_COMPARE_ABS",
    "EPS_FLOAT_COMPARE_REL",
    # Numerical Safeguards: NaN/Inf sanitization
    "is_valid_float",
    "sanitize_float",
    # Numerical Safeguards: Safe division
    "safe_divide",
    # Numerical Safeguards: Epsilon comparisons
    "is_close",
    # Numerical Safeguards: Validation
    "validate_non_negative",
    "validate_positive",
    # Constant Product: Constants
    "FEE_RATE",
    # Constant Product: Types
    "SwapQuote",
    "QuoteResult",
    "RequiredInputResult",
    # Constant Product: Functions
    "quote_swap",
    "quote_required_input",
    "calculate_price_impact",
    "initial_lp_supply",
    "lp_tokens_to_mint",
    "tokens_for_lp",
]
