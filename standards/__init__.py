"""NEC and IEC reference tables consumed by the breaker sizing pipeline."""
