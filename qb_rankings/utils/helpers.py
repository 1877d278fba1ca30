"""Helper utility functions."""
from typing import Any, Mapping, Optional

import numpy as np
import pandas as pd


def safe_divide(numerator, denominator, default: float = 0.0):
    """
    Safely divide handling zeros, NaN, and inf.

    Works with scalars, numpy arrays, and pandas Series.
    This is the canonical implementation - use this instead of
    duplicating safe_divide logic elsewhere.

    Args:
        numerator: Numerator (scalar, array, or Series)
        denominator: Denominator (scalar, array, or Series)
        default: Value to use when division is undefined

    Returns:
        Division result with same type as inputs
    """
    # Handle scalar case
    if isinstance(numerator, (int, float)) and isinstance(denominator, (int, float)):
        if denominator == 0 or pd.isna(denominator):
            return default
        result = numerator / denominator
        if np.isinf(result) or np.isnan(result):
            return default
        return result

    # Handle array/Series case (vectorized)
    if isinstance(numerator, pd.Series):
        numerator_arr = pd.to_numeric(numerator, errors='coerce').values
    else:
        numerator_arr = np.asarray(numerator, dtype=float)

    if isinstance(denominator, pd.Series):
        denominator_arr = pd.to_numeric(denominator, errors='coerce').values
    else:
        denominator_arr = np.asarray(denominator, dtype=float)

    with np.errstate(divide='ignore', invalid='ignore'):
        result = np.where(
            (denominator_arr == 0) | np.isnan(denominator_arr),
            default,
            np.divide(numerator_arr, denominator_arr)
        )
        result = np.where(np.isinf(result), default, result)
        result = np.where(np.isnan(result), default, result)

    if isinstance(numerator, pd.Series):
        return pd.Series(result, index=numerator.index)
    return result


def to_number(value: Any) -> Optional[float]:
    """
    Coerce a raw source value to float.

    Returns None when the value is absent (None, NaN, empty string) and 0.0
    when it is present but not numeric ("--", "N/A"). Never raises.
    """
    if _is_absent(value):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", "")
    try:
        number = pd.to_numeric(value, errors="coerce")
    except (TypeError, ValueError):
        return 0.0
    if not pd.api.types.is_scalar(number) or pd.isna(number):
        return 0.0
    return float(number)


def is_malformed(value: Any) -> bool:
    """True if a present source value could not be read as a number."""
    if _is_absent(value):
        return False
    if isinstance(value, str):
        value = value.strip().replace(",", "")
    try:
        number = pd.to_numeric(value, errors="coerce")
    except (TypeError, ValueError):
        return True
    return not pd.api.types.is_scalar(number) or bool(pd.isna(number))


def _is_absent(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return bool(pd.api.types.is_scalar(value) and pd.isna(value))


def weighted_mean(values: Mapping[Any, float], weights: Mapping[Any, float]) -> Optional[float]:
    """
    Weighted mean over the keys present in both mappings.

    Keys whose value is None or whose weight is not positive are skipped, and
    the sum is divided by the weights actually used. Returns None when
    nothing contributes.
    """
    weighted_sum = 0.0
    total_weight = 0.0
    for key, value in values.items():
        weight = weights.get(key, 0)
        if value is None or not weight or weight <= 0:
            continue
        weighted_sum += value * weight
        total_weight += weight
    if total_weight == 0:
        return None
    return weighted_sum / total_weight


def clip(value: float, lower: float = 0.0, upper: float = 1.0) -> float:
    """Clamp a scalar to [lower, upper]."""
    return float(min(upper, max(lower, value)))
