"""Domain services operating on an explicit async session."""
