"""Wire protocol: frame codec, ref allocation, topic keys."""
