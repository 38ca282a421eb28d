"""Cancellation parts package (see ``fastgpt_client.base.cancellation``)."""
