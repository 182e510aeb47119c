"""
截图成绩汇总系统 - 后端核心模块

模块结构：
- config/     运行期配置
- models/     数据模型定义（Job / ExtractedRecord / DisplayRow）
- ingest/     图片输入筛选与加载
- gateway/    AI 识别网关（Gemini）
- pipeline/   批处理调度与任务存储
- report/     结果聚合、排序与CSV导出
- session.py  会话编排层
- cli.py      命令行入口
"""

__version__ = "0.1.0"
