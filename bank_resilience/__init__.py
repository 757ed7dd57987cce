"""Banking data resilience layer: circuit breaker, throttle and emergency mode."""
