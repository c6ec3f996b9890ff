"""EMI calculator for standard and education loans."""
