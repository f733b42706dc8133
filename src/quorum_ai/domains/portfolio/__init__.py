"""Portfolio review domain: risk analyst, growth strategist, sector balance."""
