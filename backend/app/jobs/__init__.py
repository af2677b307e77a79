"""Background job functions executed by RQ workers."""
