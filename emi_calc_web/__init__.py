"""Flask front end for the EMI calculator."""
