"""claude-mem binary provisioning and invocation.

Layout:
    base.py       # Success / Failure result types, ReleaseInfo
    process.py    # run the binary, capture output as a HookResult
    protocol.py   # argv and stdio-JSON hook request encodings
    prober.py     # installed version
    release.py    # latest published release
    installer.py  # download + chmod
    updater.py    # reconcile installed vs published
"""
