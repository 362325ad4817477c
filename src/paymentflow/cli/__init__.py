"""PaymentFlow CLI tools."""
