def register_jobs(app, service):
    """Put every active, unpaused feed back on its polling interval.

    Jobs live only in this process, so they are rebuilt from the store on
    every start.
    """
    try:
        n = service.restore_auto_refresh()
    except Exception:
        app.logger.exception("[scheduler] could not restore auto-refresh jobs")
        return 0
    app.logger.info(f"[scheduler] auto-refresh scheduled for {n} feeds")
    return n
