"""Rate table and deduction rule configuration."""
