"""Cloud provider specific compilers."""
