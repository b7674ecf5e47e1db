"""RSA signing primitives: canonical strings, key loading, signatures."""
