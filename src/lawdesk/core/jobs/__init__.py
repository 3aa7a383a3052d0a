"""Background job processing with ARQ.

Provides Redis-based async background jobs, run by a separate worker
process:

    arq lawdesk.core.jobs.worker.WorkerSettings
"""
