"""MapReduce jobs that can be loaded by the worker FunctionLoader."""
