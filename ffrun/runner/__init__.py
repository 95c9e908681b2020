"""Process runners — launch a program and supervise it until it exits.

- BaseRunner: the run(arg, cancel) contract
- HookedRunner: resolves, starts and waits for a program, calling
  pre-start, post-start and on-cancel hooks along the way
- hooks: ready-made hooks (signals, output redirection, environment)
"""
