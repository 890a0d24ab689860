from chainforge.ext.embedding.providers.openai import OpenAIEmbedding

__all__ = ["OpenAIEmbedding"]
