"""
Test package for batch_transcode.

unit/ covers single components, integration/ drives the pipeline and the
orchestrator over real temporary directories with a fake encoder, and
regression/ pins down path handling bugs.
"""
