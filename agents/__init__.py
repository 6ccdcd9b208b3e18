"""Decision oracles: the pluggable source of BUY/SELL/HOLD decisions."""
