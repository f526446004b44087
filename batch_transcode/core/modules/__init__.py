# Core modules for batch_transcode
