# -*- coding: utf-8 -*-
"""构建器模块"""
