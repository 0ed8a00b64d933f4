# Web 服务模块
