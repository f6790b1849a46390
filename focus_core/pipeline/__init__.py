"""AI 请求编排流水线：Request Builder -> Normalizer -> Fallback，以及流式转发。"""
