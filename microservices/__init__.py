"""Storefront fulfillment microservices: order, shipping and return services"""
